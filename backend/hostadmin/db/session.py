from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hostadmin.core.config import settings


def configure_sqlite_transactions(async_engine: AsyncEngine) -> None:
    """
    Make SQLAlchemy emit the transaction BEGIN for SQLite and take the write
    lock up front, so a store precondition read and the writes that follow
    cannot interleave with another writer.
    """
    sync_engine = async_engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# -----------------------------
# Async engine (FastAPI)
# -----------------------------
# Use CLEAN URL to avoid asyncpg errors with sslmode/channel_binding query params.
DATABASE_URL_ASYNC = settings.DATABASE_URL_ASYNC_CLEAN

_engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
if not DATABASE_URL_ASYNC.startswith("sqlite"):
    _engine_kwargs["pool_recycle"] = 300  # recycle connections periodically (seconds)

engine: AsyncEngine = create_async_engine(DATABASE_URL_ASYNC, echo=False, **_engine_kwargs)
if DATABASE_URL_ASYNC.startswith("sqlite"):
    configure_sqlite_transactions(engine)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    FastAPI dependency returning the session factory.

    The document and identity stores open one short session per call so that
    each store operation is its own transaction.
    """
    return AsyncSessionLocal
