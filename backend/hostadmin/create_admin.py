# backend/hostadmin/create_admin.py
"""
Create an administrator login.

Usage:
    python -m hostadmin.create_admin admin@example.com 'long-password'

Run the migrations first (``alembic upgrade head``).
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from hostadmin.core.errors import HostAdminError
from hostadmin.core.logging_setup import setup_logging
from hostadmin.db.session import AsyncSessionLocal, engine
from hostadmin.services.identity import SqlIdentityStore
from hostadmin.services.provisioning import provision_admin
from hostadmin.store.sql import SqlDocumentStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="hostadmin.create_admin", description="Create an admin login.")
    parser.add_argument("email", help="login email of the new admin")
    parser.add_argument("password", help=f"password, at least {MIN_PASSWORD_LENGTH} characters")
    args = parser.parse_args(argv)
    if len(args.password) < MIN_PASSWORD_LENGTH:
        parser.error(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return args


async def create_admin(email: str, password: str) -> int:
    try:
        record = await provision_admin(
            SqlIdentityStore(AsyncSessionLocal),
            SqlDocumentStore(AsyncSessionLocal),
            email,
            password,
        )
    except (HostAdminError, ValueError) as e:
        logger.error(f"Error creating admin user: {e}")
        return 1
    finally:
        await engine.dispose()

    logger.info(f"Created admin with UID: {record.uid}")
    print(record.uid)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(log_file="")
    return asyncio.run(create_admin(args.email, args.password))


if __name__ == "__main__":
    sys.exit(main())
