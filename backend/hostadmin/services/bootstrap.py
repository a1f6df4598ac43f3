# backend/hostadmin/services/bootstrap.py
from __future__ import annotations

import logging
from collections.abc import Iterable

from hostadmin.core.clock import Clock, now_ms
from hostadmin.core.errors import HostAdminError
from hostadmin.schemas.records import AdminRecord, SystemConfig
from hostadmin.services.gate import FALLBACK_ADMIN_USERNAME, admin_path
from hostadmin.services.system_config import SYSTEM_CONFIG_PATH
from hostadmin.store.base import DocumentStore

logger = logging.getLogger(__name__)


async def initialize_database(
    store: DocumentStore,
    bootstrap_uids: Iterable[str],
    clock: Clock = now_ms,
) -> None:
    """
    Make sure the bootstrap admin records and the system configuration exist.

    Runs at application startup. Failures are logged and skipped: the gate
    rewrites bootstrap admin records on login and the config service falls
    back to defaults, so a store outage here must not stop the app.
    """
    logger.info("Initializing database structures...")

    for uid in bootstrap_uids:
        try:
            if await store.get(admin_path(uid)) is None:
                record = AdminRecord(uid=uid, username=FALLBACK_ADMIN_USERNAME, last_login=clock())
                await store.set(admin_path(uid), record.to_document())
                logger.info(f"Admin record for {uid} created")
            else:
                logger.info(f"Admin record for {uid} already exists")
        except (HostAdminError, ValueError) as e:
            logger.warning(f"Failed to check/create admin record for {uid}: {e}")

    try:
        if await store.get(SYSTEM_CONFIG_PATH) is None:
            await store.set(SYSTEM_CONFIG_PATH, SystemConfig().to_document())
            logger.info("System configuration initialized")
    except HostAdminError as e:
        logger.warning(f"Failed to initialize system config: {e}")

    logger.info("Database initialization complete")
