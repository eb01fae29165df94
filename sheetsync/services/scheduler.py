from __future__ import annotations

import httpx
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import async_sessionmaker

from sheetsync.config import settings

log = structlog.get_logger(__name__)
_scheduler: AsyncIOScheduler | None = None


async def _scheduled_import(sessions: async_sessionmaker, client: httpx.AsyncClient) -> None:
    from sheetsync.commands import registry
    from sheetsync.services.importer import ImportContext

    ctx = ImportContext(sessions=sessions, client=client, triggered_by="scheduler")
    outcome = await registry.dispatch("run_import", ctx)
    if outcome.ok:
        log.info("scheduler.import.done", **outcome.result.model_dump())
    else:
        log.error("scheduler.import.failed", message=outcome.message)


def start_scheduler(sessions: async_sessionmaker, client: httpx.AsyncClient) -> None:
    global _scheduler
    if not settings.SCHEDULER_ENABLED:
        log.info("scheduler.disabled")
        return

    _scheduler = AsyncIOScheduler()
    _scheduler.add_job(
        _scheduled_import,
        trigger=IntervalTrigger(minutes=settings.IMPORT_INTERVAL_MINUTES),
        args=[sessions, client],
        id="auto_import",
        replace_existing=True,
        max_instances=1,
    )
    _scheduler.start()
    log.info("scheduler.started", interval_minutes=settings.IMPORT_INTERVAL_MINUTES)


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler and _scheduler.running:
        _scheduler.shutdown(wait=False)
        log.info("scheduler.stopped")


def scheduler_status() -> str:
    return "running" if (_scheduler and _scheduler.running) else "stopped"
