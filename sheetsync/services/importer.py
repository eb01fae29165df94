from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

import httpx
import structlog
from sqlalchemy.ext.asyncio import async_sessionmaker

from sheetsync.database import ensure_tables
from sheetsync.repositories.config_entries import ConfigRepository
from sheetsync.repositories.journal import ExecutionLog
from sheetsync.repositories.records import RecordRepository
from sheetsync.schemas import CommandOutcome, ImportConfig
from sheetsync.services.fetcher import fetch_pages
from sheetsync.services.reconciler import reconcile
from sheetsync.services.summary import write_summary

log = structlog.get_logger(__name__)

LOGS_TABLE = "logs"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def whole_seconds(duration_ms: int) -> int:
    """Milliseconds to seconds, halves rounded up."""
    return int(duration_ms / 1000 + 0.5)


@dataclass
class ImportContext:
    """Explicit handles every command runs against."""
    sessions: async_sessionmaker
    client: httpx.AsyncClient
    clock: Callable[[], datetime] = field(default=utc_now)
    triggered_by: str = "manual"

    @property
    def journal(self) -> ExecutionLog:
        return ExecutionLog(self.sessions, self.clock)


async def run_import(ctx: ImportContext) -> CommandOutcome:
    """
    Run the whole pipeline once: config, fetch, reconcile, write, summarize.

    Any failure is logged as a single ``Import failed`` entry and turned into
    the generic failure outcome. Stages committed before the failure stay
    persisted; only the failing stage's uncommitted writes are rolled back.
    """
    t0 = time.monotonic()
    # One instant for every row written by this run
    now = ctx.clock()
    journal = ctx.journal

    async with ctx.sessions() as db:
        try:
            await ensure_tables(db)

            cfg = ImportConfig.from_mapping(await ConfigRepository(db).load())
            await journal.info(
                "Starting import",
                {
                    "baseUrl": cfg.api_url,
                    "maxPages": cfg.max_pages,
                    "mode": cfg.mode.value,
                    "triggeredBy": ctx.triggered_by,
                },
            )

            records = await fetch_pages(ctx.client, cfg.api_url, cfg.max_pages, journal)

            repo = RecordRepository(db)
            to_append, to_update, result = reconcile(
                await repo.all_rows(), records, cfg.mode, now
            )

            await repo.append(to_append)
            await db.commit()
            await repo.update_in_place(to_update)
            await db.commit()

            await write_summary(db, result)
            await db.commit()

            duration_ms = int((time.monotonic() - t0) * 1000)
            await journal.info(
                "Import complete", {**result.model_dump(), "durationMs": duration_ms}
            )
        except Exception as exc:
            await db.rollback()
            log.error("import.failed", error=str(exc), triggered_by=ctx.triggered_by)
            await _journal_failure(journal, exc)
            return CommandOutcome(
                command="run_import",
                ok=False,
                message=f'Import failed. Check "{LOGS_TABLE}" table.',
                duration_ms=int((time.monotonic() - t0) * 1000),
            )

    log.info("import.complete", triggered_by=ctx.triggered_by, **result.model_dump())
    return CommandOutcome(
        command="run_import",
        ok=True,
        message=(
            f"Done. Imported: {result.inserted}, Updated: {result.updated}, "
            f"Skipped: {result.skipped}. ({whole_seconds(duration_ms)}s)"
        ),
        result=result,
        duration_ms=duration_ms,
    )


async def _journal_failure(journal: ExecutionLog, exc: Exception) -> None:
    # The failure outcome must still reach the operator if the log is down
    try:
        await journal.error("Import failed", {"error": str(exc)})
    except Exception as log_exc:
        log.error("journal.write.failed", error=str(log_exc), original_error=str(exc))


async def clear_data(ctx: ImportContext) -> CommandOutcome:
    async with ctx.sessions() as db:
        await ensure_tables(db)
        removed = await RecordRepository(db).clear()
    await ctx.journal.info("Cleared data", {"rows": removed})
    return CommandOutcome(command="clear_data", ok=True, message='Cleared "data".')
