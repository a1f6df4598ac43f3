# backend/hostadmin/services/identity.py
from __future__ import annotations

import abc
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hostadmin.core.errors import IdentityAlreadyExists, InvalidCredentials, StoreUnavailable
from hostadmin.core.security import hash_password, verify_password
from hostadmin.models.identity import Identity

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


@dataclass(frozen=True)
class AuthenticatedIdentity:
    uid: str
    email: str


IdentityListener = Callable[[Optional[AuthenticatedIdentity]], Awaitable[None]]


class IdentityStore(abc.ABC):
    """
    Credential provider with a current-identity slot.

    Mirrors a client auth SDK: ``authenticate_with_password`` signs an
    identity in, ``sign_out`` clears it, and every change is delivered to the
    callbacks registered with ``on_identity_changed`` (awaited in order).
    """

    def __init__(self) -> None:
        self._current: Optional[AuthenticatedIdentity] = None
        self._listeners: list[IdentityListener] = []

    @property
    def current_identity(self) -> Optional[AuthenticatedIdentity]:
        return self._current

    def on_identity_changed(self, callback: IdentityListener) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    async def authenticate_with_password(self, email: str, password: str) -> AuthenticatedIdentity:
        identity = await self._authenticate(email, password)
        await self._set_current(identity)
        return identity

    async def sign_out(self) -> None:
        if self._current is None:
            return
        logger.debug(f"Signing out identity {self._current.uid}")
        await self._set_current(None)

    async def _set_current(self, identity: Optional[AuthenticatedIdentity]) -> None:
        self._current = identity
        for listener in list(self._listeners):
            await listener(identity)

    @abc.abstractmethod
    async def _authenticate(self, email: str, password: str) -> AuthenticatedIdentity:
        """Check the credentials; raise InvalidCredentials when they do not match."""

    @abc.abstractmethod
    async def create_identity(self, email: str, password: str) -> AuthenticatedIdentity:
        """Register a new email/password identity and return it (not signed in)."""

    @abc.abstractmethod
    async def delete_identity(self, uid: str) -> None:
        """Remove an identity; a missing uid is not an error."""


class SqlIdentityStore(IdentityStore):
    """Identity store over the ``identities`` table with bcrypt password hashes."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        super().__init__()
        self._sessionmaker = sessionmaker

    async def _authenticate(self, email: str, password: str) -> AuthenticatedIdentity:
        email = Identity.normalize_email(email)
        try:
            async with self._sessionmaker() as session:
                res = await session.execute(select(Identity).where(Identity.email == email))
                identity = res.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Identity lookup failed for {email}: {e}")
            raise StoreUnavailable("identity store unavailable") from e

        if identity is None or not identity.is_active or not verify_password(password, identity.password_hash):
            logger.info(f"Rejected credentials for {email}")
            raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

        return AuthenticatedIdentity(uid=identity.uid, email=identity.email)

    async def create_identity(self, email: str, password: str) -> AuthenticatedIdentity:
        email = Identity.normalize_email(email)
        if "@" not in email:
            raise ValueError("email is invalid")
        identity = Identity(email=email, password_hash=hash_password(password), is_active=True)
        try:
            async with self._sessionmaker() as session:
                session.add(identity)
                await session.commit()
        except IntegrityError as e:
            raise IdentityAlreadyExists(f"An identity for {email} already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Identity creation failed for {email}: {e}")
            raise StoreUnavailable("identity store unavailable") from e

        logger.info(f"Created identity {identity.uid} for {email}")
        return AuthenticatedIdentity(uid=identity.uid, email=identity.email)

    async def delete_identity(self, uid: str) -> None:
        try:
            async with self._sessionmaker() as session:
                await session.execute(delete(Identity).where(Identity.uid == uid))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Identity deletion failed for {uid}: {e}")
            raise StoreUnavailable("identity store unavailable") from e

        logger.info(f"Deleted identity {uid}")
