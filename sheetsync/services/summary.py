from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, List, Tuple

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.repositories.records import RecordRepository
from sheetsync.repositories.summary import SummaryRepository
from sheetsync.schemas import ImportResult

log = structlog.get_logger(__name__)

TOP_TYPES = 5
BLANK_TYPE = "(blank)"

Metric = Tuple[str, Any]


def summarize(type_values: Iterable[str], result: ImportResult) -> List[Metric]:
    """
    Build the summary table for the current data rows and the last run.

    ``type_values`` is the type column of every data row in table order.
    Categories with equal counts keep the order in which they first appear
    in the table.
    """
    types = [(t or "").strip() or BLANK_TYPE for t in type_values]

    metrics: List[Metric] = [
        ("Total rows in sheet", len(types)),
        ("Imported (new)", result.inserted),
        ("Updated", result.updated),
        ("Skipped", result.skipped),
    ]
    if not types:
        return metrics

    # Counter keeps first-seen order; sorted() is stable under reverse=True
    counts = Counter(types)
    metrics.append(("Distinct types", len(counts)))
    top = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:TOP_TYPES]
    for i, (category, count) in enumerate(top, start=1):
        metrics.append((f"Top type #{i}", f"{category}: {count}"))
    return metrics


async def write_summary(db: AsyncSession, result: ImportResult) -> List[Metric]:
    type_values = await RecordRepository(db).type_values()
    metrics = summarize(type_values, result)
    await SummaryRepository(db).replace(metrics)
    log.info("summary.written", metrics=len(metrics), rows=len(type_values))
    return metrics
