# backend/hostadmin/api/v1/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from hostadmin.api.deps.auth import get_current_admin
from hostadmin.api.deps.services import get_gate, get_identity_store
from hostadmin.core.config import settings
from hostadmin.core.security import create_access_token
from hostadmin.schemas.auth import AdminResponse, LoginRequest, TokenResponse
from hostadmin.schemas.records import AdminRecord
from hostadmin.services.gate import AdminSession, AuthorizationGate
from hostadmin.services.identity import IdentityStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    identity_store: IdentityStore = Depends(get_identity_store),
    gate: AuthorizationGate = Depends(get_gate),
) -> TokenResponse:
    """
    Body: {"email": "admin@example.com", "password": "..."}
    Returns an access token only when the identity passes admin verification.
    """
    session = AdminSession(identity_store, gate)
    try:
        admin = await session.login(payload.email, payload.password)
    finally:
        session.close()

    access_token = create_access_token(
        admin.uid,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    return TokenResponse(access_token=access_token, admin=AdminResponse.from_record(admin))


@router.post("/logout")
async def logout(admin: AdminRecord = Depends(get_current_admin)):
    """
    Tokens are stateless; the client drops its token. Kept so the client has
    a single place to end the session.
    """
    logger.info(f"Admin {admin.uid} logged out")
    return {"status": "ok"}


@router.get("/me", response_model=AdminResponse)
async def me(admin: AdminRecord = Depends(get_current_admin)) -> AdminResponse:
    return AdminResponse.from_record(admin)
