# tests/test_document_store.py
from __future__ import annotations

import pytest

from hostadmin.core.errors import OptimisticConflict
from hostadmin.store.base import check_disjoint, flatten, normalize_path, unflatten


def test_normalize_path_strips_slashes():
    assert normalize_path("/hosts/h1/") == "hosts/h1"


@pytest.mark.parametrize("path", ["", "/", "hosts//h1", "hosts/h.1", "a/b$", "x/[0]"])
def test_normalize_path_rejects_bad_paths(path):
    with pytest.raises(ValueError):
        normalize_path(path)


def test_flatten_and_unflatten():
    leaves = flatten("hosts/h1", {"username": "amy", "tags": ["a", "b"], "meta": {}, "gone": None})
    assert leaves == {"hosts/h1/username": "amy", "hosts/h1/tags": ["a", "b"]}
    assert unflatten("hosts/h1", sorted(leaves.items())) == {"username": "amy", "tags": ["a", "b"]}
    assert unflatten("hosts/h1", []) is None


def test_check_disjoint_rejects_nested_paths():
    check_disjoint(["hosts/h1/status", "hosts/h2"])
    with pytest.raises(ValueError):
        check_disjoint(["hosts/h1", "hosts/h1/status"])


@pytest.mark.asyncio
async def test_set_get_roundtrip_and_subtree_reads(store):
    await store.set("hosts/h1", {"username": "amy", "subscriptionEnd": 10, "status": "active"})
    await store.set("hosts/h2", {"username": "bob", "subscriptionEnd": 20, "status": "inactive"})

    assert await store.get("hosts/h1") == {"username": "amy", "subscriptionEnd": 10, "status": "active"}
    assert await store.get("hosts/h1/subscriptionEnd") == 10
    assert set((await store.get("hosts")).keys()) == {"h1", "h2"}
    assert await store.get("hosts/missing") is None


@pytest.mark.asyncio
async def test_set_overwrites_whole_subtree(store):
    await store.set("systemConfig", {"backupFrequency": "daily", "retentionPeriod": 30})
    await store.set("systemConfig", {"backupFrequency": "weekly"})
    assert await store.get("systemConfig") == {"backupFrequency": "weekly"}


@pytest.mark.asyncio
async def test_prefix_siblings_are_not_part_of_subtree(store):
    await store.set("hosts/h1", {"username": "amy"})
    await store.set("hosts/h10", {"username": "zed"})
    await store.set("hosts/h_1", {"username": "und"})

    await store.remove("hosts/h1")

    assert await store.get("hosts/h1") is None
    assert await store.get("hosts/h10") == {"username": "zed"}
    assert await store.get("hosts/h_1") == {"username": "und"}


@pytest.mark.asyncio
async def test_paths_differing_only_in_case_are_distinct(store):
    await store.set("hosts/H1", {"username": "upper", "status": "active"})
    await store.set("hosts/h1", {"username": "lower"})

    assert await store.get("hosts/H1") == {"username": "upper", "status": "active"}
    assert await store.get("hosts/h1") == {"username": "lower"}

    await store.remove("hosts/h1")

    assert await store.get("hosts/h1") is None
    assert await store.get("hosts/H1") == {"username": "upper", "status": "active"}


@pytest.mark.asyncio
async def test_precondition_read_is_case_sensitive(store):
    await store.set("hosts/H1", {"revision": 5})
    await store.update({"hosts/h1": {"revision": 0}}, expect={"hosts/h1": None})
    assert await store.get("hosts/H1/revision") == 5
    assert await store.get("hosts/h1/revision") == 0


@pytest.mark.asyncio
async def test_scalar_parent_is_replaced_by_child_write(store):
    await store.set("a", 1)
    await store.set("a/b", 2)
    assert await store.get("a") == {"b": 2}


@pytest.mark.asyncio
async def test_update_is_all_or_nothing_when_precondition_fails(store):
    await store.set("hosts/h1", {"revision": 3, "status": "active"})

    with pytest.raises(OptimisticConflict) as exc:
        await store.update(
            {"hosts/h1/status": "inactive", "log/e1": {"action": "suspend"}},
            expect={"hosts/h1/revision": 2},
        )

    assert exc.value.paths == ["hosts/h1/revision"]
    assert await store.get("hosts/h1") == {"revision": 3, "status": "active"}
    assert await store.get("log") is None


@pytest.mark.asyncio
async def test_update_applies_every_path_when_precondition_holds(store):
    await store.set("hosts/h1", {"revision": 3, "status": "active"})

    await store.update(
        {"hosts/h1/status": "inactive", "hosts/h1/revision": 4, "log/e1": {"action": "suspend"}},
        expect={"hosts/h1/revision": 3, "hosts/h1/status": "active"},
    )

    assert await store.get("hosts/h1") == {"revision": 4, "status": "inactive"}
    assert await store.get("log/e1") == {"action": "suspend"}


@pytest.mark.asyncio
async def test_expect_none_means_absent(store):
    await store.update({"hosts/h1": {"username": "amy"}}, expect={"hosts/h1": None})
    with pytest.raises(OptimisticConflict):
        await store.update({"hosts/h1": {"username": "other"}}, expect={"hosts/h1": None})
    assert await store.get("hosts/h1/username") == "amy"


@pytest.mark.asyncio
async def test_update_rejects_overlapping_paths(store):
    with pytest.raises(ValueError):
        await store.update({"hosts/h1": {"username": "amy"}, "hosts/h1/status": "active"})
