from __future__ import annotations
from functools import lru_cache
from typing import Dict, List
from pydantic import field_validator
from pydantic_settings import BaseSettings


# Seeded into an empty config table on first run.
DEFAULT_IMPORT_CONFIG: Dict[str, str] = {
    "api_url": "https://rickandmortyapi.com/api/location",
    "max_pages": "3",
    "mode": "upsert",
}


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────────────────────────────
    APP_NAME: str = "Sheet Sync"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # ── Authentication ───────────────────────────────────────────────────────
    API_KEY: str  # required, no default

    # ── CORS ─────────────────────────────────────────────────────────────────
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # ── Database ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./sheetsync.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # ── HTTP fetcher ─────────────────────────────────────────────────────────
    HTTP_TIMEOUT: float = 30.0

    # ── Scheduler ────────────────────────────────────────────────────────────
    SCHEDULER_ENABLED: bool = False
    IMPORT_INTERVAL_MINUTES: int = 60

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_env(cls, v: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v

    @field_validator("IMPORT_INTERVAL_MINUTES")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 1:
            raise ValueError("IMPORT_INTERVAL_MINUTES must be at least 1")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
