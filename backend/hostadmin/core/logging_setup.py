"""
Configure logging for the application.

Installs a rotating file handler and a stdout stream handler on the root
logger. Level and file name come from settings. Called once from the
application factory so every module logger (``logging.getLogger(__name__)``)
shares the same output.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys

from hostadmin.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Configure logging with rotating file and stream handlers.

    Args:
        level: Overrides ``settings.LOG_LEVEL`` when given.
        log_file: Overrides ``settings.LOG_FILE`` when given. An empty string
            disables the file handler.
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    log_formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    log_file = settings.LOG_FILE if log_file is None else log_file

    if log_file:
        # Ensure the log directory exists if the file name includes a path
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            try:
                os.makedirs(log_dir)
            except OSError as e:
                print(
                    f"Could not create log directory {log_dir}: {e}. Using current directory for logs.",
                    file=sys.stderr,
                )
                log_file = os.path.basename(log_file)

        # Rotates when the file reaches 5MB, keeps 5 backups
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
            file_handler.setFormatter(log_formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Error setting up file logger for {log_file}: {e}", file=sys.stderr)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(log_formatter)
    root_logger.addHandler(stream_handler)

    logging.getLogger(__name__).info(
        "Logging setup complete. Level: %s, File: %s",
        logging.getLevelName(log_level),
        log_file or "-",
    )
