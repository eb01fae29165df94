from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import select, delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.exceptions import StoreWriteError
from sheetsync.models import DataRow
from sheetsync.schemas import PersistedRow, RowValues

log = structlog.get_logger(__name__)


class RecordRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def all_rows(self) -> List[PersistedRow]:
        rows = (
            await self.db.execute(select(DataRow).order_by(DataRow.row))
        ).scalars().all()
        return [PersistedRow.from_model(r) for r in rows]

    async def type_values(self) -> List[str]:
        """The ``type`` column of every row, in table order."""
        rows = await self.db.execute(select(DataRow.type).order_by(DataRow.row))
        return [t or "" for t in rows.scalars().all()]

    async def count(self) -> int:
        return (await self.db.execute(select(func.count(DataRow.row)))).scalar_one()

    async def append(self, rows: Sequence[RowValues]) -> None:
        """Append all rows as one batch at the end of the table."""
        if not rows:
            return
        try:
            self.db.add_all(
                DataRow(
                    timestamp=r.timestamp,
                    record_id=r.id,
                    name=r.name,
                    type=r.type,
                    dimension=r.dimension,
                )
                for r in rows
            )
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to append rows: {exc}", {"rows": len(rows)}) from exc
        log.info("records.appended", count=len(rows))

    async def update_in_place(self, updates: Sequence[Tuple[int, RowValues]]) -> None:
        """Overwrite whole rows at the given positions."""
        try:
            for position, r in updates:
                await self.db.execute(
                    update(DataRow)
                    .where(DataRow.row == position)
                    .values({
                        DataRow.timestamp: r.timestamp,
                        DataRow.record_id: r.id,
                        DataRow.name: r.name,
                        DataRow.type: r.type,
                        DataRow.dimension: r.dimension,
                    })
                )
            await self.db.flush()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to update rows: {exc}", {"rows": len(updates)}) from exc
        if updates:
            log.info("records.updated", count=len(updates))

    async def clear(self) -> int:
        """Truncate the data table back to its header-only state."""
        try:
            result = await self.db.execute(delete(DataRow))
            await self.db.commit()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to clear data: {exc}") from exc
        log.info("records.cleared", count=result.rowcount)
        return result.rowcount

    async def get_paginated(self, page: int, page_size: int) -> Tuple[int, List[PersistedRow]]:
        total = await self.count()
        rows = (
            await self.db.execute(
                select(DataRow)
                .order_by(DataRow.row)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
        ).scalars().all()
        return total, [PersistedRow.from_model(r) for r in rows]

    async def get_by_id(self, record_id: str) -> Optional[PersistedRow]:
        # Last row wins, matching how upserts resolve duplicate ids
        row = (
            await self.db.execute(
                select(DataRow)
                .where(DataRow.record_id == record_id)
                .order_by(DataRow.row.desc())
                .limit(1)
            )
        ).scalars().first()
        return PersistedRow.from_model(row) if row else None
