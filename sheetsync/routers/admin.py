from __future__ import annotations
from fastapi import APIRouter
import sqlalchemy

from sheetsync.config import settings
from sheetsync.database import engine
from sheetsync.schemas import HealthResponse
from sheetsync.services.scheduler import scheduler_status

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check is intentionally unauthenticated for load balancer probes."""
    try:
        async with engine.connect() as conn:
            await conn.execute(sqlalchemy.text("SELECT 1"))
        db_status = "ok"
    except Exception:
        db_status = "error"

    return HealthResponse(
        status="ok" if db_status == "ok" else "degraded",
        database=db_status,
        scheduler=scheduler_status(),
        version=settings.APP_VERSION,
    )
