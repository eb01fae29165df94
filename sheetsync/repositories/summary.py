from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.exceptions import StoreWriteError
from sheetsync.models import SummaryMetric


class SummaryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def replace(self, metrics: Sequence[Tuple[str, Any]]) -> None:
        """Discard the previous summary and write ``metrics`` in order."""
        try:
            await self.db.execute(delete(SummaryMetric))
            self.db.add_all(SummaryMetric(metric=m, value=v) for m, v in metrics)
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to write summary: {exc}") from exc

    async def all(self) -> List[SummaryMetric]:
        rows = await self.db.execute(select(SummaryMetric).order_by(SummaryMetric.row))
        return list(rows.scalars().all())
