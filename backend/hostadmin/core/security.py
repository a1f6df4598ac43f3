from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from fastapi import HTTPException, status
from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from hostadmin.core.config import settings

bearer_scheme = HTTPBearer(auto_error=True)


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(uid: str, expires_minutes: Optional[int] = None) -> str:
    """Sign a session token for an admin uid."""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {
        "sub": uid,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + lifetime).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the uid a session token was issued for; 401 when it is unusable."""
    token = (token or "").strip()
    if not token:
        raise _invalid_token()
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_sub": True, "require_exp": True},
        )
    except JWTError:
        # expired, tampered, or not a JWT at all
        raise _invalid_token() from None
    uid = claims.get("sub")
    if not uid:
        raise _invalid_token()
    return str(uid)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False
