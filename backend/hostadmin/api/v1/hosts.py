# backend/hostadmin/api/v1/hosts.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hostadmin.api.deps.auth import get_current_admin
from hostadmin.api.deps.services import get_identity_store, get_ledger
from hostadmin.schemas.hosts import (
    ExtendRequest,
    HostCreateRequest,
    HostResponse,
    HostUpdateRequest,
    ReactivateRequest,
    SuspendExpiredResponse,
    SuspendRequest,
)
from hostadmin.schemas.records import AdminRecord
from hostadmin.services.identity import IdentityStore
from hostadmin.services.ledger import SubscriptionLedger
from hostadmin.services.provisioning import provision_host

router = APIRouter(prefix="/hosts", tags=["hosts"])


@router.get("", response_model=list[HostResponse])
async def list_hosts(
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> list[HostResponse]:
    """All hosts, soonest expiry first."""
    return [HostResponse.from_view(v) for v in await ledger.query_all()]


@router.post("", response_model=HostResponse, status_code=status.HTTP_201_CREATED)
async def create_host(
    payload: HostCreateRequest,
    identity_store: IdentityStore = Depends(get_identity_store),
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> HostResponse:
    view = await provision_host(
        identity_store,
        ledger,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        subscription_end=payload.subscription_end,
    )
    return HostResponse.from_view(view)


# Declared before /{host_id} routes so the literal path wins.
@router.post("/suspend-expired", response_model=SuspendExpiredResponse)
async def suspend_expired_hosts(
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> SuspendExpiredResponse:
    return SuspendExpiredResponse(suspended=await ledger.suspend_expired(actor_uid=admin.uid))


@router.get("/{host_id}", response_model=HostResponse)
async def get_host(
    host_id: str,
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> HostResponse:
    return HostResponse.from_view(await ledger.query(host_id))


@router.patch("/{host_id}", response_model=HostResponse)
async def update_host(
    host_id: str,
    payload: HostUpdateRequest,
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> HostResponse:
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    view = await ledger.update_profile(host_id, username=data.get("username"), email=data.get("email"))
    return HostResponse.from_view(view)


@router.delete("/{host_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_host(
    host_id: str,
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> None:
    """Removes the host record; its subscription history stays."""
    await ledger.remove(host_id)


@router.post("/{host_id}/extend", response_model=HostResponse)
async def extend_subscription(
    host_id: str,
    payload: ExtendRequest,
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> HostResponse:
    view = await ledger.extend(host_id, payload.days, actor_uid=admin.uid, note=payload.note)
    return HostResponse.from_view(view)


@router.post("/{host_id}/suspend", response_model=HostResponse)
async def suspend_host(
    host_id: str,
    payload: SuspendRequest | None = None,
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> HostResponse:
    note = payload.note if payload else None
    return HostResponse.from_view(await ledger.suspend(host_id, actor_uid=admin.uid, note=note))


@router.post("/{host_id}/reactivate", response_model=HostResponse)
async def reactivate_host(
    host_id: str,
    payload: ReactivateRequest | None = None,
    ledger: SubscriptionLedger = Depends(get_ledger),
    admin: AdminRecord = Depends(get_current_admin),
) -> HostResponse:
    payload = payload or ReactivateRequest()
    view = await ledger.reactivate(host_id, actor_uid=admin.uid, note=payload.note, new_end=payload.new_end)
    return HostResponse.from_view(view)
