from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sheetsync.models import LogEntry

log = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

INFO = "INFO"
ERROR = "ERROR"


class ExecutionLog:
    """Append-only operator log backed by the ``logs`` table.

    Every entry is written through its own session and committed right away,
    so entries recorded before a failure outlive the failed run.
    """

    def __init__(self, sessions: async_sessionmaker, clock: Clock):
        self.sessions = sessions
        self.clock = clock

    async def write(
        self, level: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        async with self.sessions() as db:
            db.add(
                LogEntry(
                    timestamp=self.clock(),
                    level=level,
                    message=message,
                    context=json.dumps(context or {}, default=str),
                )
            )
            await db.commit()
        log.info("journal.appended", level=level, message=message)

    async def info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.write(INFO, message, context)

    async def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.write(ERROR, message, context)


async def recent_entries(db: AsyncSession, limit: int = 50) -> List[LogEntry]:
    rows = await db.execute(
        select(LogEntry)
        .order_by(LogEntry.id.desc())
        .limit(limit)
    )
    return list(rows.scalars().all())
