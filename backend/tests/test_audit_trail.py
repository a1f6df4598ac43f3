# tests/test_audit_trail.py
from __future__ import annotations

import pytest

from hostadmin.core.clock import DAY_MS
from hostadmin.core.errors import MalformedRecord
from hostadmin.services.audit import HostHistory, filter_history
from hostadmin.schemas.records import SubscriptionAction, SubscriptionRecord

from conftest import T0

ADMIN = "admin-1"


def record(timestamp: int) -> SubscriptionRecord:
    return SubscriptionRecord(
        action=SubscriptionAction.EXTEND,
        duration=1,
        timestamp=timestamp,
        previous_end=0,
        new_end=DAY_MS,
    )


def sample_history() -> list[HostHistory]:
    return [
        HostHistory("A", "Alice Tables", "alice@example.com", [record(T0 - 2 * DAY_MS)]),
        HostHistory("B", "Bob Bingo", "bob@example.com", [record(T0 - 40 * DAY_MS)]),
    ]


def test_since_days_keeps_hosts_with_recent_records():
    kept = filter_history(sample_history(), since_days=7, now=T0)
    assert [g.host_id for g in kept] == ["A"]


def test_since_days_boundary_is_inclusive():
    history = [HostHistory("A", "a", "a@example.com", [record(T0 - 7 * DAY_MS)])]
    assert filter_history(history, since_days=7, now=T0) == history


def test_text_query_matches_name_or_email_case_insensitively():
    assert [g.host_id for g in filter_history(sample_history(), text_query="BINGO")] == ["B"]
    assert [g.host_id for g in filter_history(sample_history(), text_query="alice@")] == ["A"]
    assert filter_history(sample_history(), text_query="nobody") == []


def test_filters_combine():
    kept = filter_history(sample_history(), host_id="B", text_query="bob", since_days=7, now=T0)
    assert kept == []
    assert [g.host_id for g in filter_history(sample_history(), host_id="B")] == ["B"]


def test_no_filters_keeps_everything():
    assert len(filter_history(sample_history())) == 2


@pytest.mark.asyncio
async def test_host_history_is_newest_first(ledger, audit, clock):
    await ledger.create("h1", "amy", "amy@example.com")
    await ledger.extend("h1", 1, actor_uid=ADMIN)
    clock.advance(days=1)
    await ledger.suspend("h1", actor_uid=ADMIN)
    clock.advance(days=1)
    await ledger.reactivate("h1", actor_uid=ADMIN)

    entries = await audit.host_history("h1")

    assert [e.action for e in entries] == [
        SubscriptionAction.REACTIVATE,
        SubscriptionAction.SUSPEND,
        SubscriptionAction.EXTEND,
    ]
    assert entries[0].timestamp > entries[1].timestamp > entries[2].timestamp
    assert all(e.id for e in entries)


@pytest.mark.asyncio
async def test_host_history_empty_for_unknown_host(audit):
    assert await audit.host_history("nobody") == []


@pytest.mark.asyncio
async def test_load_joins_host_metadata(ledger, audit):
    await ledger.create("h1", "amy", "amy@example.com")
    await ledger.create("h2", "bob", "bob@example.com")
    await ledger.extend("h1", 3, actor_uid=ADMIN)

    groups = await audit.load()

    assert len(groups) == 1
    assert (groups[0].host_id, groups[0].host_name, groups[0].email) == ("h1", "amy", "amy@example.com")


@pytest.mark.asyncio
async def test_search_uses_clock_for_since_days(ledger, audit, clock):
    await ledger.create("h1", "amy", "amy@example.com")
    await ledger.extend("h1", 3, actor_uid=ADMIN)

    assert len(await audit.search(since_days=7)) == 1
    clock.advance(days=8)
    assert await audit.search(since_days=7) == []


@pytest.mark.asyncio
async def test_malformed_history_record(store, audit):
    await store.set("subscriptionHistory/h1/k1", {"action": "refund", "timestamp": 1, "previousEnd": 0, "newEnd": 0})
    with pytest.raises(MalformedRecord) as exc:
        await audit.host_history("h1")
    assert exc.value.path == "subscriptionHistory/h1/k1"
