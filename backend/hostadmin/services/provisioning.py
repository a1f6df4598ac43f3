# backend/hostadmin/services/provisioning.py
from __future__ import annotations

import logging
from typing import Optional

from hostadmin.core.clock import Clock, now_ms
from hostadmin.core.errors import HostAdminError
from hostadmin.schemas.records import AdminRecord
from hostadmin.services.gate import FALLBACK_ADMIN_USERNAME, admin_path, local_part
from hostadmin.services.identity import IdentityStore
from hostadmin.services.ledger import HostView, SubscriptionLedger
from hostadmin.store.base import DocumentStore

logger = logging.getLogger(__name__)


async def provision_host(
    identity_store: IdentityStore,
    ledger: SubscriptionLedger,
    username: str,
    email: str,
    password: str,
    subscription_end: Optional[int] = None,
) -> HostView:
    """Create a login for a new host and its host record under the same uid."""
    identity = await identity_store.create_identity(email, password)
    try:
        view = await ledger.create(identity.uid, username, identity.email, subscription_end=subscription_end)
    except (HostAdminError, ValueError):
        await _discard_identity(identity_store, identity.uid)
        raise
    logger.info(f"Provisioned host {identity.uid} ({identity.email})")
    return view


async def provision_admin(
    identity_store: IdentityStore,
    store: DocumentStore,
    email: str,
    password: str,
    clock: Clock = now_ms,
) -> AdminRecord:
    """Create a login and the admin record that lets it through the gate."""
    identity = await identity_store.create_identity(email, password)
    record = AdminRecord(
        uid=identity.uid,
        username=local_part(identity.email) or FALLBACK_ADMIN_USERNAME,
        last_login=clock(),
    )
    try:
        await store.set(admin_path(identity.uid), record.to_document())
    except HostAdminError:
        await _discard_identity(identity_store, identity.uid)
        raise
    logger.info(f"Provisioned admin {identity.uid} ({identity.email})")
    return record


async def _discard_identity(identity_store: IdentityStore, uid: str) -> None:
    # A provisioned login always has its record.
    logger.warning(f"Rolling back identity {uid} after a failed record write")
    await identity_store.delete_identity(uid)
