# backend/hostadmin/api/deps/auth.py
from __future__ import annotations

from fastapi import Depends

from hostadmin.api.deps.services import get_gate
from hostadmin.core.security import bearer_scheme, decode_access_token
from hostadmin.schemas.records import AdminRecord
from hostadmin.services.gate import AuthorizationGate


async def get_current_admin(
    credentials=Depends(bearer_scheme),
    gate: AuthorizationGate = Depends(get_gate),
) -> AdminRecord:
    """
    Dependency for admin-only endpoints.

    The token only proves who is calling; the admin record is checked again
    on every request so a revoked admin is locked out before the token expires.
    """
    uid = decode_access_token(credentials.credentials)
    return await gate.read_admin(uid)
