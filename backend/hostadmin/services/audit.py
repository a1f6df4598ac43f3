# backend/hostadmin/services/audit.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from hostadmin.core.clock import DAY_MS, Clock, now_ms
from hostadmin.core.errors import MalformedRecord
from hostadmin.schemas.records import SubscriptionRecord
from hostadmin.services.ledger import HISTORY_ROOT, HOSTS_ROOT, history_path
from hostadmin.store.base import DocumentStore

logger = logging.getLogger(__name__)

UNKNOWN_HOST_NAME = "Unknown Host"
UNKNOWN_HOST_EMAIL = "N/A"


@dataclass
class HostHistory:
    host_id: str
    host_name: str
    email: str
    records: list[SubscriptionRecord] = field(default_factory=list)


def _decode_records(host_id: str, raw: Any) -> list[SubscriptionRecord]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise MalformedRecord(history_path(host_id), f"expected an object, got {type(raw).__name__}")
    records = [
        SubscriptionRecord.from_document(history_path(host_id, key), value, id=key)
        for key, value in raw.items()
    ]
    # Newest first; keys break ties between records of the same millisecond.
    records.sort(key=lambda r: (r.timestamp, r.id or ""), reverse=True)
    return records


def filter_history(
    history: list[HostHistory],
    *,
    host_id: Optional[str] = None,
    text_query: Optional[str] = None,
    since_days: Optional[int] = None,
    now: Optional[int] = None,
) -> list[HostHistory]:
    """
    Keep the host groups matching every given filter.

    ``text_query`` matches the host name or email, case-insensitively.
    ``since_days`` keeps a group when at least one of its records is no older
    than that many days; the records inside a kept group are not trimmed.
    """
    query = (text_query or "").strip().lower()
    cutoff = None
    if since_days is not None:
        if since_days < 0:
            raise ValueError("since_days must not be negative")
        cutoff = (now_ms() if now is None else now) - since_days * DAY_MS

    kept = []
    for group in history:
        if host_id and group.host_id != host_id:
            continue
        if query and query not in group.host_name.lower() and query not in group.email.lower():
            continue
        if cutoff is not None and not any(r.timestamp >= cutoff for r in group.records):
            continue
        kept.append(group)
    return kept


class AuditTrail:
    """Read side of the subscription history. Records are only written by the ledger."""

    def __init__(self, store: DocumentStore, clock: Clock = now_ms):
        self._store = store
        self._clock = clock

    async def host_history(self, host_id: str) -> list[SubscriptionRecord]:
        return _decode_records(host_id, await self._store.get(history_path(host_id)))

    async def load(self) -> list[HostHistory]:
        hosts = await self._store.get(HOSTS_ROOT) or {}
        raw_history = await self._store.get(HISTORY_ROOT) or {}
        if not isinstance(raw_history, dict):
            raise MalformedRecord(HISTORY_ROOT, f"expected an object, got {type(raw_history).__name__}")

        groups = []
        for host_id, raw in raw_history.items():
            records = _decode_records(host_id, raw)
            if not records:
                continue
            host = hosts.get(host_id) if isinstance(hosts, dict) else None
            host = host if isinstance(host, dict) else {}
            groups.append(
                HostHistory(
                    host_id=host_id,
                    host_name=host.get("username") or UNKNOWN_HOST_NAME,
                    email=host.get("email") or UNKNOWN_HOST_EMAIL,
                    records=records,
                )
            )
        logger.debug(f"Loaded subscription history for {len(groups)} host(s)")
        return groups

    async def search(
        self,
        *,
        host_id: Optional[str] = None,
        text_query: Optional[str] = None,
        since_days: Optional[int] = None,
    ) -> list[HostHistory]:
        return filter_history(
            await self.load(),
            host_id=host_id,
            text_query=text_query,
            since_days=since_days,
            now=self._clock(),
        )
