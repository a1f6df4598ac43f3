# backend/hostadmin/schemas/history.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from hostadmin.schemas.records import SubscriptionAction, SubscriptionRecord
from hostadmin.services.audit import HostHistory


class SubscriptionRecordResponse(BaseModel):
    id: Optional[str] = None
    action: SubscriptionAction
    duration: Optional[int] = None
    note: Optional[str] = None
    timestamp: int
    previous_end: int
    new_end: int
    actor_uid: Optional[str] = None

    @classmethod
    def from_record(cls, record: SubscriptionRecord) -> "SubscriptionRecordResponse":
        return cls.model_validate(record.model_dump())


class HostHistoryResponse(BaseModel):
    host_id: str
    host_name: str
    email: str
    records: list[SubscriptionRecordResponse]

    @classmethod
    def from_history(cls, group: HostHistory) -> "HostHistoryResponse":
        return cls(
            host_id=group.host_id,
            host_name=group.host_name,
            email=group.email,
            records=[SubscriptionRecordResponse.from_record(r) for r in group.records],
        )
