# backend/hostadmin/schemas/system.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from hostadmin.schemas.records import SystemConfig


class SystemConfigResponse(BaseModel):
    backup_frequency: str
    retention_period: int
    maintenance_mode: bool
    last_backup: int
    last_maintenance: int

    @classmethod
    def from_config(cls, config: SystemConfig) -> "SystemConfigResponse":
        return cls.model_validate(config.model_dump())


class SystemConfigUpdate(BaseModel):
    """Editable settings. Backup and maintenance timestamps are set by their own endpoints."""

    model_config = ConfigDict(extra="forbid")

    backup_frequency: Literal["hourly", "daily", "weekly", "monthly"]
    retention_period: int = Field(gt=0, le=3650)
    maintenance_mode: bool = False
