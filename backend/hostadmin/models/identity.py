# backend/hostadmin/models/identity.py
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hostadmin.db.base import Base


def _new_uid() -> str:
    return uuid.uuid4().hex


class Identity(Base):
    """Email/password credential owned by the identity store. ``uid`` is the stable identifier."""

    __tablename__ = "identities"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True, default=_new_uid)

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)

    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @staticmethod
    def normalize_email(value: str) -> str:
        return value.strip().lower()
