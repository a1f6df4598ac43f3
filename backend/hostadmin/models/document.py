# backend/hostadmin/models/document.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from hostadmin.db.base import Base


class Document(Base):
    """
    One leaf of the document tree.

    The tree is stored flattened: ``path`` is the slash-joined key of a leaf
    (e.g. ``hosts/h1/subscriptionEnd``) and ``value`` its JSON scalar or list.
    Objects are never stored as a single row; they are rebuilt from the leaves
    below their path.
    """

    __tablename__ = "documents"

    path: Mapped[str] = mapped_column(String(512), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
