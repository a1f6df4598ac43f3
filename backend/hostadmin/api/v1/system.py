# backend/hostadmin/api/v1/system.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from hostadmin.api.deps.auth import get_current_admin
from hostadmin.api.deps.services import get_system_config
from hostadmin.schemas.records import AdminRecord
from hostadmin.schemas.system import SystemConfigResponse, SystemConfigUpdate
from hostadmin.services.system_config import SystemConfigService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config", response_model=SystemConfigResponse)
async def get_config(
    service: SystemConfigService = Depends(get_system_config),
    admin: AdminRecord = Depends(get_current_admin),
) -> SystemConfigResponse:
    return SystemConfigResponse.from_config(await service.get())


@router.put("/config", response_model=SystemConfigResponse)
async def update_config(
    payload: SystemConfigUpdate,
    service: SystemConfigService = Depends(get_system_config),
    admin: AdminRecord = Depends(get_current_admin),
) -> SystemConfigResponse:
    current = await service.get()
    config = current.model_copy(update=payload.model_dump())
    logger.info(f"Admin {admin.uid} updated system config")
    return SystemConfigResponse.from_config(await service.save(config))


@router.post("/backup", response_model=SystemConfigResponse)
async def backup(
    service: SystemConfigService = Depends(get_system_config),
    admin: AdminRecord = Depends(get_current_admin),
) -> SystemConfigResponse:
    return SystemConfigResponse.from_config(await service.record_backup())


@router.post("/maintenance", response_model=SystemConfigResponse)
async def maintenance(
    service: SystemConfigService = Depends(get_system_config),
    admin: AdminRecord = Depends(get_current_admin),
) -> SystemConfigResponse:
    return SystemConfigResponse.from_config(await service.record_maintenance())
