# backend/hostadmin/api/v1/subscriptions.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from hostadmin.api.deps.auth import get_current_admin
from hostadmin.api.deps.services import get_audit_trail
from hostadmin.schemas.history import HostHistoryResponse, SubscriptionRecordResponse
from hostadmin.schemas.records import AdminRecord
from hostadmin.services.audit import AuditTrail

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("/history", response_model=list[HostHistoryResponse])
async def list_history(
    host_id: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None, max_length=200),
    since_days: Optional[int] = Query(default=None, ge=0, le=3650),
    audit: AuditTrail = Depends(get_audit_trail),
    admin: AdminRecord = Depends(get_current_admin),
) -> list[HostHistoryResponse]:
    """
    Subscription history grouped by host, newest record first.

    ``q`` matches host name or email; ``since_days`` keeps hosts with at least
    one record in that window.
    """
    groups = await audit.search(host_id=host_id, text_query=q, since_days=since_days)
    return [HostHistoryResponse.from_history(g) for g in groups]


@router.get("/history/{host_id}", response_model=list[SubscriptionRecordResponse])
async def host_history(
    host_id: str,
    audit: AuditTrail = Depends(get_audit_trail),
    admin: AdminRecord = Depends(get_current_admin),
) -> list[SubscriptionRecordResponse]:
    return [SubscriptionRecordResponse.from_record(r) for r in await audit.host_history(host_id)]
