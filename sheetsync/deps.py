from __future__ import annotations

import httpx
from fastapi import Depends, Request

from sheetsync.database import SessionLocal
from sheetsync.services.importer import ImportContext, utc_now


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_import_context(
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ImportContext:
    return ImportContext(sessions=SessionLocal, client=client, clock=utc_now)
