# backend/hostadmin/schemas/records.py
"""
Record types for documents kept in the document store.

Stored documents use camelCase keys; the Python attributes are snake_case
with aliases. ``from_document`` is the only way stored data becomes a record:
anything that does not fit raises ``MalformedRecord`` with the offending path.
"""
from __future__ import annotations

import enum
from typing import Any, ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from hostadmin.core.errors import MalformedRecord


class HostStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class SubscriptionAction(str, enum.Enum):
    EXTEND = "extend"
    SUSPEND = "suspend"
    REACTIVATE = "reactivate"


class HostStanding(str, enum.Enum):
    """Derived from days remaining, never stored."""

    EXPIRED = "expired"
    AT_RISK = "at_risk"
    HEALTHY = "healthy"


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {item.get('msg')}")
    return "; ".join(parts)


class StoredRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Attributes that come from the document path, not from the document body.
    key_fields: ClassVar[frozenset[str]] = frozenset()

    @classmethod
    def from_document(cls, path: str, value: Any, **keys: Any):
        if not isinstance(value, dict):
            raise MalformedRecord(path, f"expected an object, got {type(value).__name__}")
        try:
            return cls.model_validate({**value, **keys})
        except ValidationError as e:
            raise MalformedRecord(path, _summarize(e)) from e

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude=set(self.key_fields),
        )


class AdminRecord(StoredRecord):
    key_fields: ClassVar[frozenset[str]] = frozenset({"uid"})

    uid: str
    username: str = Field(min_length=1)
    role: Literal["admin"] = "admin"
    last_login: int = Field(default=0, alias="lastLogin", ge=0)


class HostRecord(StoredRecord):
    key_fields: ClassVar[frozenset[str]] = frozenset({"id"})

    id: str
    username: str
    email: str
    status: HostStatus
    subscription_end: int = Field(alias="subscriptionEnd")
    last_login: int = Field(default=0, alias="lastLogin", ge=0)
    role: Literal["host"] = "host"
    # Version token bumped by every ledger transition; guards concurrent writers.
    revision: int = Field(default=0, ge=0)


class SubscriptionRecord(StoredRecord):
    key_fields: ClassVar[frozenset[str]] = frozenset({"id"})

    id: Optional[str] = None
    action: SubscriptionAction
    duration: Optional[int] = Field(default=None, gt=0)
    note: Optional[str] = None
    timestamp: int
    previous_end: int = Field(alias="previousEnd")
    new_end: int = Field(alias="newEnd")
    actor_uid: Optional[str] = Field(default=None, alias="actorUid")


class SystemConfig(StoredRecord):
    backup_frequency: Literal["hourly", "daily", "weekly", "monthly"] = Field(
        default="daily", alias="backupFrequency"
    )
    retention_period: int = Field(default=30, alias="retentionPeriod", gt=0)
    maintenance_mode: bool = Field(default=False, alias="maintenanceMode")
    last_backup: int = Field(default=0, alias="lastBackup", ge=0)
    last_maintenance: int = Field(default=0, alias="lastMaintenance", ge=0)
