# backend/hostadmin/services/gate.py
from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from typing import Optional

from hostadmin.core.clock import Clock, now_ms
from hostadmin.core.errors import (
    HostAdminError,
    MalformedRecord,
    NotAnAdmin,
    StoreUnavailable,
    TransientBootstrapWriteFailure,
)
from hostadmin.schemas.records import AdminRecord
from hostadmin.services.identity import AuthenticatedIdentity, IdentityStore
from hostadmin.store.base import DocumentStore, join_path

logger = logging.getLogger(__name__)

ADMINS_ROOT = "admins"
ADMIN_ROLE = "admin"
FALLBACK_ADMIN_USERNAME = "admin"


def local_part(email: Optional[str]) -> str:
    """'jane@example.com' -> 'jane'. Empty string when there is nothing before '@'."""
    if not email:
        return ""
    return email.split("@", 1)[0].strip()


def admin_path(uid: str) -> str:
    return join_path(ADMINS_ROOT, uid)


class AuthorizationGate:
    """
    Decides whether an authenticated identity may act as an administrator.

    Identities in ``bootstrap_uids`` are self-healing: their admin record is
    (re)written on every verification. Everyone else needs an existing
    ``admins/{uid}`` document with ``role == "admin"``. Every successful
    verification refreshes ``lastLogin``.
    """

    def __init__(self, store: DocumentStore, bootstrap_uids: Iterable[str], clock: Clock = now_ms):
        self._store = store
        self._bootstrap_uids = frozenset(bootstrap_uids)
        self._clock = clock

    def is_bootstrap(self, uid: str) -> bool:
        return uid in self._bootstrap_uids

    async def verify_admin(self, uid: str, email: Optional[str]) -> AdminRecord:
        if self.is_bootstrap(uid):
            record = AdminRecord(
                uid=uid,
                username=local_part(email) or FALLBACK_ADMIN_USERNAME,
                role=ADMIN_ROLE,
                last_login=self._clock(),
            )
            try:
                await self._store.set(admin_path(uid), record.to_document())
            except StoreUnavailable as e:
                failure = TransientBootstrapWriteFailure(f"bootstrap admin write failed for {uid}: {e}")
                logger.warning(f"{failure}; falling back to the stored admin record")
            else:
                logger.info(f"Bootstrap admin {uid} verified")
                return record

        record = await self._load(uid, email)

        refreshed = record.model_copy(update={"last_login": max(self._clock(), record.last_login)})
        await self._store.set(join_path(admin_path(uid), "lastLogin"), refreshed.last_login)
        logger.info(f"Admin {uid} verified")
        return refreshed

    async def read_admin(self, uid: str) -> AdminRecord:
        """Same checks as ``verify_admin`` without the ``lastLogin`` write."""
        return await self._load(uid, None)

    async def _load(self, uid: str, email: Optional[str]) -> AdminRecord:
        path = admin_path(uid)
        raw = await self._store.get(path)
        if raw is None:
            logger.info(f"No admin record for {uid}")
            raise NotAnAdmin("Access denied. Admin privileges required.")
        if not isinstance(raw, dict):
            raise MalformedRecord(path, f"expected an object, got {type(raw).__name__}")
        if raw.get("role") != ADMIN_ROLE:
            logger.info(f"Record for {uid} has role {raw.get('role')!r}, not admin")
            raise NotAnAdmin("Access denied. Admin privileges required.")

        if not raw.get("username"):
            raw = {**raw, "username": local_part(email) or FALLBACK_ADMIN_USERNAME}
        return AdminRecord.from_document(path, raw, uid=uid)


class SessionState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    TRANSIENT_ERROR = "transient_error"


class AdminSession:
    """
    Per-session admin state driven by identity changes.

    A denied or failed verification signs the identity out again, so the
    session never stays half authenticated; the last error is kept in
    ``error`` for the caller.
    """

    def __init__(self, identity_store: IdentityStore, gate: AuthorizationGate):
        self._identity_store = identity_store
        self._gate = gate
        self.state = SessionState.UNAUTHENTICATED
        self.admin: Optional[AdminRecord] = None
        self.error: Optional[HostAdminError] = None
        self._unsubscribe = identity_store.on_identity_changed(self._on_identity_changed)

    async def _on_identity_changed(self, identity: Optional[AuthenticatedIdentity]) -> None:
        if identity is None:
            self.state = SessionState.UNAUTHENTICATED
            self.admin = None
            return

        self.state = SessionState.AUTHENTICATING
        self.error = None
        try:
            self.admin = await self._gate.verify_admin(identity.uid, identity.email)
        except (NotAnAdmin, MalformedRecord) as e:
            self.state = SessionState.DENIED
            self.error = e
        except StoreUnavailable as e:
            self.state = SessionState.TRANSIENT_ERROR
            self.error = e
        else:
            self.state = SessionState.AUTHORIZED
            return

        logger.info(f"Signing out {identity.uid}: {self.state.value} ({self.error})")
        await self._identity_store.sign_out()

    async def login(self, email: str, password: str) -> AdminRecord:
        """
        Authenticate and wait for the admin verification.

        Raises InvalidCredentials from the identity store unchanged, or the
        error that denied the session.
        """
        self.error = None
        await self._identity_store.authenticate_with_password(email, password)
        if self.state is SessionState.AUTHORIZED and self.admin is not None:
            return self.admin
        if self.error is not None:
            raise self.error
        raise StoreUnavailable("admin verification did not complete")

    async def logout(self) -> None:
        await self._identity_store.sign_out()
        self.admin = None
        self.error = None
        self.state = SessionState.UNAUTHENTICATED

    def close(self) -> None:
        self._unsubscribe()
