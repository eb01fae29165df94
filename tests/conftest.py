import os

# Set required env vars BEFORE any sheetsync imports trigger Settings()
os.environ.setdefault("API_KEY", "test-api-key-for-testing")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import json
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from sheetsync.database import init_db, get_db
from sheetsync.deps import get_import_context
from sheetsync.main import app
from sheetsync.repositories.config_entries import ConfigRepository
from sheetsync.services.importer import ImportContext

TEST_API_KEY = "test-api-key-for-testing"
API_URL = "https://api.test/locations"
FIXED_NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


class FakeUpstream:
    """Serves canned pages for ``GET {API_URL}?page=N`` and records requests."""

    def __init__(self):
        self.pages = {}
        self.requests = []

    def page(self, n, results=None, status=200, body=None):
        if body is None:
            body = json.dumps({"info": {"pages": n}, "results": results or []})
        self.pages[n] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page = int(request.url.params.get("page", "0"))
        status, body = self.pages.get(page, (404, '{"error": "There is nothing here"}'))
        return httpx.Response(status, content=body.encode())

    @property
    def requested_pages(self):
        return [int(r.url.params["page"]) for r in self.requests]


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    # File-backed so the execution log can use its own connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sheetsync.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def sessions(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(sessions):
    async with sessions() as session:
        yield session


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest_asyncio.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as c:
        yield c


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def ctx(sessions, http_client, clock):
    return ImportContext(sessions=sessions, client=http_client, clock=clock)


@pytest_asyncio.fixture
async def configure(sessions):
    async def _configure(**values):
        async with sessions() as session:
            repo = ConfigRepository(session)
            for key, value in {"api_url": API_URL, **values}.items():
                await repo.set(key, str(value))
    return _configure


@pytest_asyncio.fixture
async def client(sessions, ctx):
    async def override_get_db():
        async with sessions() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_import_context] = lambda: ctx

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": TEST_API_KEY},
    ) as c:
        yield c

    app.dependency_overrides.clear()
