from __future__ import annotations

from typing import Dict

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.config import DEFAULT_IMPORT_CONFIG
from sheetsync.exceptions import ConfigError
from sheetsync.models import ConfigEntry

log = structlog.get_logger(__name__)


class ConfigRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _read(self) -> Dict[str, str]:
        rows = (await self.db.execute(select(ConfigEntry))).scalars().all()
        cfg: Dict[str, str] = {}
        for row in rows:
            key = (row.key or "").strip()
            if key:
                cfg[key] = (row.value or "").strip()
        return cfg

    async def load(self) -> Dict[str, str]:
        """Read every key/value pair, seeding the sample defaults if empty."""
        cfg = await self._read()
        if cfg:
            return cfg

        self.db.add_all(
            ConfigEntry(key=k, value=v) for k, v in DEFAULT_IMPORT_CONFIG.items()
        )
        await self.db.commit()
        log.info("config.seeded", keys=sorted(DEFAULT_IMPORT_CONFIG))
        return dict(DEFAULT_IMPORT_CONFIG)

    async def set(self, key: str, value: str) -> ConfigEntry:
        key = key.strip()
        if not key:
            raise ConfigError("Config key must not be blank")
        entry = await self.db.get(ConfigEntry, key)
        if entry is None:
            entry = ConfigEntry(key=key, value=value.strip())
            self.db.add(entry)
        else:
            entry.value = value.strip()
        await self.db.commit()
        return entry
