# backend/hostadmin/services/ledger.py
"""
Subscription ledger.

Hosts live at ``hosts/{hostId}`` and every status or expiry transition
appends an audit record under ``subscriptionHistory/{hostId}``. A transition
is a single ``store.update`` carrying the host field writes, the bumped
``revision`` and the audit record, guarded by the host's ``revision``,
``status`` and ``subscriptionEnd`` as they were read. If another writer got
there first the update is rejected with ``OptimisticConflict`` and nothing
(not even the audit record) is written.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from hostadmin.core.clock import DAY_MS, Clock, days_remaining, now_ms
from hostadmin.core.errors import HostAlreadyExists, HostNotFound, MalformedRecord, OptimisticConflict
from hostadmin.schemas.records import (
    HostRecord,
    HostStanding,
    HostStatus,
    SubscriptionAction,
    SubscriptionRecord,
)
from hostadmin.store.base import DocumentStore, join_path

logger = logging.getLogger(__name__)

HOSTS_ROOT = "hosts"
HISTORY_ROOT = "subscriptionHistory"

EXPIRED_NOTE = "Subscription expired"


def host_path(host_id: str) -> str:
    return join_path(HOSTS_ROOT, host_id)


def history_path(host_id: str, record_key: Optional[str] = None) -> str:
    if record_key is None:
        return join_path(HISTORY_ROOT, host_id)
    return join_path(HISTORY_ROOT, host_id, record_key)


def new_record_key(timestamp: int) -> str:
    """
    Audit record key: zero-padded timestamp plus random suffix.

    Keys sort chronologically as strings and two records written in the same
    millisecond still get distinct keys.
    """
    return f"{timestamp:013d}-{uuid.uuid4().hex[:12]}"


def classify_standing(days: int, at_risk_days: int = 7) -> HostStanding:
    if days <= 0:
        return HostStanding.EXPIRED
    if days <= at_risk_days:
        return HostStanding.AT_RISK
    return HostStanding.HEALTHY


def _clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    return note or None


@dataclass(frozen=True)
class HostView:
    record: HostRecord
    days_remaining: int
    standing: HostStanding

    @property
    def is_expired(self) -> bool:
        return self.days_remaining <= 0


class SubscriptionLedger:
    def __init__(
        self,
        store: DocumentStore,
        clock: Clock = now_ms,
        default_subscription_days: int = 30,
        at_risk_days: int = 7,
    ):
        if default_subscription_days <= 0:
            raise ValueError("default_subscription_days must be positive")
        self._store = store
        self._clock = clock
        self._default_subscription_days = default_subscription_days
        self._at_risk_days = at_risk_days

    # -----------------------------
    # Reads
    # -----------------------------
    def view(self, record: HostRecord, now: Optional[int] = None) -> HostView:
        days = days_remaining(record.subscription_end, self._clock() if now is None else now)
        return HostView(record=record, days_remaining=days, standing=classify_standing(days, self._at_risk_days))

    async def query(self, host_id: str) -> HostView:
        record, _ = await self._load(host_id)
        return self.view(record)

    async def query_all(self) -> list[HostView]:
        raw_hosts = await self._store.get(HOSTS_ROOT) or {}
        if not isinstance(raw_hosts, dict):
            raise MalformedRecord(HOSTS_ROOT, f"expected an object, got {type(raw_hosts).__name__}")
        now = self._clock()
        views = [
            self.view(HostRecord.from_document(host_path(host_id), raw, id=host_id), now)
            for host_id, raw in raw_hosts.items()
        ]
        views.sort(key=lambda v: (v.days_remaining, v.record.id))
        return views

    # -----------------------------
    # Lifecycle
    # -----------------------------
    async def create(
        self,
        host_id: str,
        username: str,
        email: str,
        *,
        subscription_end: Optional[int] = None,
    ) -> HostView:
        path = host_path(host_id)
        now = self._clock()
        if subscription_end is None:
            subscription_end = now + self._default_subscription_days * DAY_MS

        record = HostRecord(
            id=host_id,
            username=username,
            email=email,
            status=HostStatus.ACTIVE,
            subscription_end=subscription_end,
            last_login=now,
            revision=0,
        )
        if await self._store.get(path) is not None:
            raise HostAlreadyExists(host_id)
        # The precondition covers a host created between the check above and this write.
        try:
            await self._store.update({path: record.to_document()}, expect={path: None})
        except OptimisticConflict as e:
            raise HostAlreadyExists(host_id) from e

        logger.info(f"Created host {host_id} ({email}) with subscription ending {subscription_end}")
        return self.view(record, now)

    async def update_profile(
        self,
        host_id: str,
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> HostView:
        """Change display fields only; status and expiry stay with the transitions."""
        changes: dict[str, Any] = {}
        if username is not None:
            if not username.strip():
                raise ValueError("username must not be empty")
            changes["username"] = username.strip()
        if email is not None:
            if "@" not in email:
                raise ValueError("email is invalid")
            changes["email"] = email.strip().lower()
        if not changes:
            raise ValueError("No fields provided to update.")

        record, raw = await self._load(host_id)
        path = host_path(host_id)
        await self._store.update(
            {join_path(path, key): value for key, value in changes.items()},
            expect={join_path(path, "revision"): raw.get("revision")},
        )
        logger.info(f"Updated profile of host {host_id}: {sorted(changes)}")
        return self.view(record.model_copy(update=changes))

    async def remove(self, host_id: str) -> None:
        """Delete the host record. Its subscription history is kept."""
        await self._load(host_id)
        await self._store.remove(host_path(host_id))
        logger.info(f"Removed host {host_id}")

    # -----------------------------
    # Transitions
    # -----------------------------
    async def extend(
        self,
        host_id: str,
        days: int,
        *,
        actor_uid: str,
        note: Optional[str] = None,
    ) -> HostView:
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise ValueError("days must be a positive integer")
        record, raw = await self._load(host_id)
        return await self._transition(
            record,
            raw,
            action=SubscriptionAction.EXTEND,
            status=HostStatus.ACTIVE,
            new_end=record.subscription_end + days * DAY_MS,
            actor_uid=actor_uid,
            note=note,
            duration=days,
        )

    async def suspend(self, host_id: str, *, actor_uid: str, note: Optional[str] = None) -> HostView:
        record, raw = await self._load(host_id)
        return await self._transition(
            record,
            raw,
            action=SubscriptionAction.SUSPEND,
            status=HostStatus.INACTIVE,
            new_end=record.subscription_end,
            actor_uid=actor_uid,
            note=note,
        )

    async def reactivate(
        self,
        host_id: str,
        *,
        actor_uid: str,
        note: Optional[str] = None,
        new_end: Optional[int] = None,
    ) -> HostView:
        record, raw = await self._load(host_id)
        return await self._transition(
            record,
            raw,
            action=SubscriptionAction.REACTIVATE,
            status=HostStatus.ACTIVE,
            new_end=record.subscription_end if new_end is None else new_end,
            actor_uid=actor_uid,
            note=note,
        )

    async def suspend_expired(self, *, actor_uid: str) -> list[str]:
        """
        Suspend every active host whose subscription has run out.

        Only runs when called; expiry alone never changes the stored status.
        """
        suspended = []
        for view in await self.query_all():
            if view.record.status is HostStatus.ACTIVE and view.is_expired:
                await self.suspend(view.record.id, actor_uid=actor_uid, note=EXPIRED_NOTE)
                suspended.append(view.record.id)
        if suspended:
            logger.info(f"Suspended {len(suspended)} expired host(s): {suspended}")
        return suspended

    # -----------------------------
    # Internals
    # -----------------------------
    async def _load(self, host_id: str) -> tuple[HostRecord, dict[str, Any]]:
        path = host_path(host_id)
        raw = await self._store.get(path)
        if raw is None:
            raise HostNotFound(host_id)
        return HostRecord.from_document(path, raw, id=host_id), raw

    async def _transition(
        self,
        record: HostRecord,
        raw: dict[str, Any],
        *,
        action: SubscriptionAction,
        status: HostStatus,
        new_end: int,
        actor_uid: str,
        note: Optional[str],
        duration: Optional[int] = None,
    ) -> HostView:
        if not actor_uid:
            raise ValueError("actor_uid is required")

        now = self._clock()
        path = host_path(record.id)
        key = new_record_key(now)
        entry = SubscriptionRecord(
            id=key,
            action=action,
            duration=duration,
            note=_clean_note(note),
            timestamp=now,
            previous_end=record.subscription_end,
            new_end=new_end,
            actor_uid=actor_uid,
        )
        revision = record.revision + 1

        await self._store.update(
            {
                join_path(path, "status"): status.value,
                join_path(path, "subscriptionEnd"): new_end,
                join_path(path, "revision"): revision,
                history_path(record.id, key): entry.to_document(),
            },
            expect={
                join_path(path, "revision"): raw.get("revision"),
                join_path(path, "status"): raw.get("status"),
                join_path(path, "subscriptionEnd"): raw.get("subscriptionEnd"),
            },
        )
        logger.info(
            f"{action.value} host {record.id} by {actor_uid}: "
            f"{record.status.value} -> {status.value}, end {record.subscription_end} -> {new_end}"
        )
        updated = record.model_copy(update={"status": status, "subscription_end": new_end, "revision": revision})
        return self.view(updated, now)
