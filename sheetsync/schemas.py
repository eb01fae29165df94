from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional
from pydantic import BaseModel

from sheetsync.exceptions import ConfigError


class ImportMode(str, Enum):
    UPSERT = "upsert"
    APPEND = "append"


class ImportConfig(BaseModel):
    api_url: str
    max_pages: int = 1
    mode: ImportMode = ImportMode.UPSERT

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, str]) -> "ImportConfig":
        """Validate raw key/value config as read from the config table.

        Raises ConfigError when ``api_url`` is missing, ``max_pages`` is not
        a positive integer or ``mode`` is neither upsert nor append.
        """
        api_url = (cfg.get("api_url") or "").strip()
        if not api_url:
            raise ConfigError("Missing required config key: api_url")

        raw_pages = (cfg.get("max_pages") or "").strip() or "1"
        try:
            max_pages = int(raw_pages)
        except ValueError:
            raise ConfigError(
                f"max_pages must be an integer, got {raw_pages!r}",
                {"max_pages": raw_pages},
            ) from None
        if max_pages < 1:
            raise ConfigError("max_pages must be at least 1", {"max_pages": raw_pages})

        raw_mode = (cfg.get("mode") or "").strip().lower() or ImportMode.UPSERT.value
        try:
            mode = ImportMode(raw_mode)
        except ValueError:
            raise ConfigError(
                f"mode must be one of {[m.value for m in ImportMode]}, got {raw_mode!r}",
                {"mode": raw_mode},
            ) from None

        return cls(api_url=api_url, max_pages=max_pages, mode=mode)


class Record(BaseModel):
    """One normalized upstream item."""
    id: str
    name: str
    type: str = ""
    dimension: str = ""


class RowValues(BaseModel):
    timestamp: datetime
    id: str
    name: str
    type: str = ""
    dimension: str = ""


class PersistedRow(RowValues):
    row: int

    @classmethod
    def from_model(cls, r: Any) -> "PersistedRow":
        return cls(
            row=r.row,
            timestamp=r.timestamp,
            id=r.record_id,
            name=r.name,
            type=r.type or "",
            dimension=r.dimension or "",
        )


class ImportResult(BaseModel):
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    total_fetched: int = 0


class CommandOutcome(BaseModel):
    command: str
    ok: bool
    message: str
    result: Optional[ImportResult] = None
    duration_ms: Optional[int] = None


class PaginatedRecords(BaseModel):
    total: int
    page: int
    page_size: int
    items: List[PersistedRow]


class MetricOut(BaseModel):
    metric: str
    value: Any
    model_config = {"from_attributes": True}


class LogEntryOut(BaseModel):
    id: int
    timestamp: datetime
    level: str
    message: str
    context: str
    model_config = {"from_attributes": True}


class ConfigEntryOut(BaseModel):
    key: str
    value: str


class ConfigUpdate(BaseModel):
    value: str


class HealthResponse(BaseModel):
    status: str
    database: str
    scheduler: str
    version: str
