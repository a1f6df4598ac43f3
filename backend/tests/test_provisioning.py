# tests/test_provisioning.py
from __future__ import annotations

import pytest

from hostadmin.core.errors import InvalidCredentials, StoreUnavailable
from hostadmin.services.gate import admin_path
from hostadmin.services.ledger import SubscriptionLedger
from hostadmin.services.provisioning import provision_admin, provision_host
from helpers import FlakyStore


@pytest.mark.asyncio
async def test_failed_host_record_write_discards_new_login(identity_store, store, clock):
    flaky = FlakyStore(store)
    ledger = SubscriptionLedger(flaky, clock=clock)
    flaky.fail_writes = 1

    with pytest.raises(StoreUnavailable):
        await provision_host(identity_store, ledger, "amy", "amy@example.com", "host-password")
    with pytest.raises(InvalidCredentials):
        await identity_store.authenticate_with_password("amy@example.com", "host-password")

    view = await provision_host(identity_store, ledger, "amy", "amy@example.com", "host-password")
    signed_in = await identity_store.authenticate_with_password("amy@example.com", "host-password")
    assert view.record.id == signed_in.uid
    assert (await ledger.query(signed_in.uid)).record.email == "amy@example.com"


@pytest.mark.asyncio
async def test_failed_admin_record_write_discards_new_login(identity_store, store, clock):
    flaky = FlakyStore(store)
    flaky.fail_writes = 1

    with pytest.raises(StoreUnavailable):
        await provision_admin(identity_store, flaky, "ops@example.com", "long-enough", clock=clock)

    record = await provision_admin(identity_store, flaky, "ops@example.com", "long-enough", clock=clock)
    signed_in = await identity_store.authenticate_with_password("ops@example.com", "long-enough")
    assert record.uid == signed_in.uid
    assert (await store.get(admin_path(record.uid)))["role"] == "admin"


@pytest.mark.asyncio
async def test_delete_identity_ignores_unknown_uid(identity_store):
    created = await identity_store.create_identity("amy@example.com", "host-password")
    await identity_store.delete_identity("no-such-uid")
    assert await identity_store.authenticate_with_password("amy@example.com", "host-password") == created
