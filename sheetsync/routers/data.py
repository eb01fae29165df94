from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.auth import require_api_key
from sheetsync.database import get_db
from sheetsync.exceptions import NotFoundError
from sheetsync.repositories.config_entries import ConfigRepository
from sheetsync.repositories.journal import recent_entries
from sheetsync.repositories.records import RecordRepository
from sheetsync.repositories.summary import SummaryRepository
from sheetsync.schemas import (
    ConfigEntryOut, ConfigUpdate, LogEntryOut,
    MetricOut, PaginatedRecords, PersistedRow,
)
from sheetsync.services.export import build_workbook

router = APIRouter(prefix="/api/v1", tags=["data"], dependencies=[Depends(require_api_key)])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/records", response_model=PaginatedRecords)
async def list_records(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    total, rows = await RecordRepository(db).get_paginated(page, page_size)
    return PaginatedRecords(total=total, page=page, page_size=page_size, items=rows)


@router.get("/records/{record_id}", response_model=PersistedRow)
async def get_record(record_id: str, db: AsyncSession = Depends(get_db)):
    row = await RecordRepository(db).get_by_id(record_id)
    if not row:
        raise NotFoundError(f"Record {record_id} not found")
    return row


@router.get("/summary", response_model=List[MetricOut])
async def get_summary(db: AsyncSession = Depends(get_db)):
    return [MetricOut.model_validate(m) for m in await SummaryRepository(db).all()]


@router.get("/logs", response_model=List[LogEntryOut])
async def fetch_logs(
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    rows = await recent_entries(db, limit)
    return [LogEntryOut.model_validate(r) for r in rows]


@router.get("/config", response_model=List[ConfigEntryOut])
async def get_config(db: AsyncSession = Depends(get_db)):
    cfg = await ConfigRepository(db).load()
    return [ConfigEntryOut(key=k, value=v) for k, v in cfg.items()]


@router.put("/config/{key}", response_model=ConfigEntryOut)
async def put_config(key: str, body: ConfigUpdate, db: AsyncSession = Depends(get_db)):
    entry = await ConfigRepository(db).set(key, body.value)
    return ConfigEntryOut(key=entry.key, value=entry.value)


@router.get("/export.xlsx")
async def export_workbook(db: AsyncSession = Depends(get_db)):
    content = await build_workbook(db)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="sheetsync.xlsx"'},
    )
