from __future__ import annotations

import time
from typing import Any, List, Optional

import httpx
import structlog

from sheetsync.exceptions import FetchError
from sheetsync.repositories.journal import ExecutionLog
from sheetsync.schemas import Record

log = structlog.get_logger(__name__)

_HEADERS = {"Accept": "application/json"}


def _clean(value: Any) -> str:
    return str(value or "").strip()


def normalize_item(item: Any) -> Optional[Record]:
    """Stringify and trim one upstream item; None when it lacks id or name."""
    if not isinstance(item, dict):
        return None
    if not item.get("id") or not item.get("name"):
        return None
    record_id, name = _clean(item["id"]), _clean(item["name"])
    if not record_id or not name:
        return None
    return Record(
        id=record_id,
        name=name,
        type=_clean(item.get("type")),
        dimension=_clean(item.get("dimension")),
    )


async def _fetch_page(
    client: httpx.AsyncClient, base_url: str, page: int, journal: ExecutionLog
) -> List[Any]:
    url = f"{base_url}?page={page}"
    await journal.info("Fetching page", {"page": page, "url": url})

    t0 = time.monotonic()
    try:
        resp = await client.get(url, headers=_HEADERS)
    except httpx.HTTPError as exc:
        await journal.error("Request failed", {"page": page, "url": url, "error": str(exc)})
        raise FetchError(f"Request for page {page} failed: {exc}", {"page": page}) from exc
    ms = int((time.monotonic() - t0) * 1000)

    if resp.status_code != 200:
        await journal.error(
            "Non-200 response",
            {"page": page, "code": resp.status_code, "body": resp.text[:200]},
        )
        raise FetchError(
            f"API returned status {resp.status_code} on page {page}",
            {"page": page, "code": resp.status_code},
        )

    try:
        data = resp.json()
    except ValueError as exc:
        await journal.error("Invalid JSON body", {"page": page, "body": resp.text[:200]})
        raise FetchError(f"Invalid JSON body on page {page}", {"page": page}) from exc

    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        keys = sorted(data) if isinstance(data, dict) else []
        await journal.error("Unexpected JSON shape", {"page": page, "keys": keys})
        raise FetchError("Unexpected API response structure", {"page": page, "keys": keys})

    log.info("fetch.page.ok", page=page, items=len(data["results"]), ms=ms)
    return data["results"]


async def fetch_pages(
    client: httpx.AsyncClient, base_url: str, max_pages: int, journal: ExecutionLog
) -> List[Record]:
    """Fetch pages 1..max_pages in order and return the normalized records.

    Each page is awaited before the next is requested; the first failing page
    aborts the whole fetch with FetchError and nothing is returned.
    """
    records: List[Record] = []
    for page in range(1, max_pages + 1):
        for item in await _fetch_page(client, base_url, page, journal):
            record = normalize_item(item)
            if record is not None:
                records.append(record)
    log.info("fetch.complete", pages=max_pages, records=len(records))
    return records
