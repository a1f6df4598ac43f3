from __future__ import annotations

import os

# Settings are read at import time; keep tests off the developer's .env values.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["LOG_FILE"] = ""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from hostadmin.api.deps.services import get_clock
from hostadmin.core.clock import DAY_MS
from hostadmin.db.session import configure_sqlite_transactions, get_sessionmaker
from hostadmin.services.audit import AuditTrail
from hostadmin.services.gate import AuthorizationGate
from hostadmin.services.identity import SqlIdentityStore
from hostadmin.services.ledger import SubscriptionLedger
from hostadmin.store.sql import SqlDocumentStore

# Ensure Base + models are registered before create_all
from hostadmin.db.base import Base
import hostadmin.models  # noqa: F401

BOOTSTRAP_UID = "bootstrap-owner"

# 2025-10-14T00:00:00Z
T0 = 1_760_400_000_000


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, days: float = 0, ms: int = 0) -> int:
        self.now += int(days * DAY_MS) + ms
        return self.now


# ---------------------------------------------------------
# Database: fresh file per test
# ---------------------------------------------------------
@pytest.fixture()
def database_url_async(tmp_path) -> str:
    return os.getenv("TEST_DATABASE_URL_ASYNC") or f"sqlite+aiosqlite:///{tmp_path / 'hostadmin-test.db'}"


@pytest_asyncio.fixture()
async def engine(database_url_async: str):
    engine = create_async_engine(database_url_async, echo=False, poolclass=NullPool)
    if database_url_async.startswith("sqlite"):
        configure_sqlite_transactions(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


# ---------------------------------------------------------
# Core services
# ---------------------------------------------------------
@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(sessionmaker) -> SqlDocumentStore:
    return SqlDocumentStore(sessionmaker)


@pytest.fixture()
def identity_store(sessionmaker) -> SqlIdentityStore:
    return SqlIdentityStore(sessionmaker)


@pytest.fixture()
def gate(store, clock) -> AuthorizationGate:
    return AuthorizationGate(store, [BOOTSTRAP_UID], clock=clock)


@pytest.fixture()
def ledger(store, clock) -> SubscriptionLedger:
    return SubscriptionLedger(store, clock=clock, default_subscription_days=30, at_risk_days=7)


@pytest.fixture()
def audit(store, clock) -> AuditTrail:
    return AuditTrail(store, clock=clock)


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker, clock, monkeypatch):
    from hostadmin.core.config import settings
    from hostadmin.main import app as fastapi_app

    monkeypatch.setattr(settings, "BOOTSTRAP_ADMIN_UIDS", BOOTSTRAP_UID)

    fastapi_app.dependency_overrides[get_sessionmaker] = lambda: sessionmaker
    fastapi_app.dependency_overrides[get_clock] = lambda: clock
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac
