from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Sequence, Tuple

from sheetsync.schemas import ImportMode, ImportResult, PersistedRow, Record, RowValues

RowUpdate = Tuple[int, RowValues]


def reconcile(
    existing_rows: Sequence[PersistedRow],
    new_records: Sequence[Record],
    mode: ImportMode,
    now: datetime,
) -> Tuple[List[RowValues], List[RowUpdate], ImportResult]:
    """
    Classify each incoming record as inserted, updated or skipped.

    Returns (rows_to_append, rows_to_update, result). Updates are keyed by
    row position. In upsert mode an id that appears several times in
    ``existing_rows`` resolves to its last row; an id repeated within
    ``new_records`` overwrites its own pending insert and counts as updated.
    All rows carry ``now``.
    """
    existing: Dict[str, int] = {}
    if mode is ImportMode.UPSERT:
        for row in existing_rows:
            key = row.id.strip()
            if key:
                existing[key] = row.row

    to_append: List[RowValues] = []
    pending: Dict[str, int] = {}   # id -> index in to_append
    updates: Dict[int, RowValues] = {}
    result = ImportResult(total_fetched=len(new_records))

    for rec in new_records:
        if not rec.id:
            result.skipped += 1
            continue

        values = RowValues(
            timestamp=now,
            id=rec.id,
            name=rec.name,
            type=rec.type,
            dimension=rec.dimension,
        )

        if mode is ImportMode.APPEND:
            to_append.append(values)
            result.inserted += 1
            continue

        if rec.id in existing:
            updates[existing[rec.id]] = values
            result.updated += 1
        elif rec.id in pending:
            to_append[pending[rec.id]] = values
            result.updated += 1
        else:
            pending[rec.id] = len(to_append)
            to_append.append(values)
            result.inserted += 1

    return to_append, list(updates.items()), result
