# backend/hostadmin/schemas/hosts.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from hostadmin.schemas.records import HostStanding, HostStatus
from hostadmin.services.ledger import HostView


def _normalize_note(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    v = value.strip()
    return v or None


class HostCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    # Epoch milliseconds; defaults to now + DEFAULT_SUBSCRIPTION_DAYS
    subscription_end: Optional[int] = Field(default=None, ge=0)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be empty")
        return v


class HostUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: Optional[str] = Field(default=None, min_length=1, max_length=120)
    email: Optional[EmailStr] = None


class ExtendRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    days: int = Field(gt=0, le=3650)
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("note")
    @classmethod
    def clean_note(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_note(v)


class SuspendRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator("note")
    @classmethod
    def clean_note(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_note(v)


class ReactivateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    note: Optional[str] = Field(default=None, max_length=500)
    new_end: Optional[int] = Field(default=None, ge=0)

    @field_validator("note")
    @classmethod
    def clean_note(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_note(v)


class HostResponse(BaseModel):
    id: str
    username: str
    email: str
    status: HostStatus
    subscription_end: int
    last_login: int
    revision: int
    days_remaining: int
    standing: HostStanding

    @classmethod
    def from_view(cls, view: HostView) -> "HostResponse":
        r = view.record
        return cls(
            id=r.id,
            username=r.username,
            email=r.email,
            status=r.status,
            subscription_end=r.subscription_end,
            last_login=r.last_login,
            revision=r.revision,
            days_remaining=view.days_remaining,
            standing=view.standing,
        )


class SuspendExpiredResponse(BaseModel):
    suspended: list[str]
