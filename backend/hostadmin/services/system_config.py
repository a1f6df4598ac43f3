# backend/hostadmin/services/system_config.py
from __future__ import annotations

import logging

from hostadmin.core.clock import Clock, now_ms
from hostadmin.schemas.records import SystemConfig
from hostadmin.store.base import DocumentStore

logger = logging.getLogger(__name__)

SYSTEM_CONFIG_PATH = "systemConfig"


class SystemConfigService:
    """
    Operational settings kept at ``systemConfig``.

    Backup and maintenance only record when they were requested; the actual
    work is done by the hosting platform.
    """

    def __init__(self, store: DocumentStore, clock: Clock = now_ms):
        self._store = store
        self._clock = clock

    async def get(self) -> SystemConfig:
        raw = await self._store.get(SYSTEM_CONFIG_PATH)
        if raw is None:
            return SystemConfig()
        return SystemConfig.from_document(SYSTEM_CONFIG_PATH, raw)

    async def save(self, config: SystemConfig) -> SystemConfig:
        await self._store.set(SYSTEM_CONFIG_PATH, config.to_document())
        logger.info(
            f"System config saved: backup={config.backup_frequency} "
            f"retention={config.retention_period}d maintenance_mode={config.maintenance_mode}"
        )
        return config

    async def record_backup(self) -> SystemConfig:
        config = (await self.get()).model_copy(update={"last_backup": self._clock()})
        await self._store.set(f"{SYSTEM_CONFIG_PATH}/lastBackup", config.last_backup)
        logger.info(f"Backup recorded at {config.last_backup}")
        return config

    async def record_maintenance(self) -> SystemConfig:
        config = (await self.get()).model_copy(update={"last_maintenance": self._clock()})
        await self._store.set(f"{SYSTEM_CONFIG_PATH}/lastMaintenance", config.last_maintenance)
        logger.info(f"Maintenance recorded at {config.last_maintenance}")
        return config
