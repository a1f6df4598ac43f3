# backend/hostadmin/schemas/auth.py
from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from hostadmin.schemas.records import AdminRecord


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=256)


class AdminResponse(BaseModel):
    uid: str
    username: str
    role: str
    last_login: int

    @classmethod
    def from_record(cls, record: AdminRecord) -> "AdminResponse":
        return cls(uid=record.uid, username=record.username, role=record.role, last_login=record.last_login)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin: AdminResponse
