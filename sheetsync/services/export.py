"""Workbook export of the data, summary and logs tables."""

from io import BytesIO
from typing import Any, Iterable, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.models import DATA_HEADERS, LOG_HEADERS, SUMMARY_HEADERS
from sheetsync.repositories.journal import recent_entries
from sheetsync.repositories.records import RecordRepository
from sheetsync.repositories.summary import SummaryRepository

_HEADER_FONT = Font(bold=True)
_MAX_LOG_ROWS = 5000


def _naive(value: Any) -> Any:
    # openpyxl rejects tz-aware datetimes
    tzinfo = getattr(value, "tzinfo", None)
    if tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def _write_sheet(wb: Workbook, title: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    ws = wb.create_sheet(title)
    for col_idx, header in enumerate(headers, 1):
        ws.cell(row=1, column=col_idx, value=header).font = _HEADER_FONT
    for row in rows:
        ws.append([_naive(v) for v in row])
    for col_idx in range(1, len(headers) + 1):
        ws.column_dimensions[ws.cell(row=1, column=col_idx).column_letter].width = 24


async def build_workbook(db: AsyncSession) -> bytes:
    data_rows: List[Sequence[Any]] = [
        (r.timestamp, r.id, r.name, r.type, r.dimension)
        for r in await RecordRepository(db).all_rows()
    ]
    summary_rows = [(m.metric, m.value) for m in await SummaryRepository(db).all()]
    log_rows = [
        (e.timestamp, e.level, e.message, e.context)
        for e in reversed(await recent_entries(db, _MAX_LOG_ROWS))
    ]

    wb = Workbook()
    wb.remove(wb.active)
    _write_sheet(wb, "data", DATA_HEADERS, data_rows)
    _write_sheet(wb, "summary", SUMMARY_HEADERS, summary_rows)
    _write_sheet(wb, "logs", LOG_HEADERS, log_rows)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
