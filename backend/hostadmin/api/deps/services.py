# backend/hostadmin/api/deps/services.py
"""
Per-request wiring of the stores and services.

Every dependency resolves from ``get_sessionmaker`` and ``get_clock`` so tests
can swap the database and freeze time with ``app.dependency_overrides``.
"""
from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hostadmin.core.clock import Clock, now_ms
from hostadmin.core.config import settings
from hostadmin.db.session import get_sessionmaker
from hostadmin.services.audit import AuditTrail
from hostadmin.services.gate import AuthorizationGate
from hostadmin.services.identity import SqlIdentityStore
from hostadmin.services.ledger import SubscriptionLedger
from hostadmin.services.system_config import SystemConfigService
from hostadmin.store.base import DocumentStore
from hostadmin.store.sql import SqlDocumentStore


def get_clock() -> Clock:
    return now_ms


def get_store(
    sessionmaker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> DocumentStore:
    return SqlDocumentStore(sessionmaker)


def get_identity_store(
    sessionmaker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> SqlIdentityStore:
    return SqlIdentityStore(sessionmaker)


def get_gate(
    store: DocumentStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> AuthorizationGate:
    return AuthorizationGate(store, settings.bootstrap_admin_uids, clock=clock)


def get_ledger(
    store: DocumentStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> SubscriptionLedger:
    return SubscriptionLedger(
        store,
        clock=clock,
        default_subscription_days=settings.DEFAULT_SUBSCRIPTION_DAYS,
        at_risk_days=settings.AT_RISK_DAYS,
    )


def get_audit_trail(
    store: DocumentStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> AuditTrail:
    return AuditTrail(store, clock=clock)


def get_system_config(
    store: DocumentStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> SystemConfigService:
    return SystemConfigService(store, clock=clock)
