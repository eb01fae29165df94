import structlog
import logging
import contextlib

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import HTTPException

from sheetsync.config import settings
from sheetsync.database import SessionLocal, init_db, close_db
from sheetsync.exceptions import AppError, app_error_handler, http_error_handler
from sheetsync.middleware import LoggingMiddleware
from sheetsync.routers.admin import router as admin_router
from sheetsync.routers.commands import router as commands_router
from sheetsync.routers.data import router as data_router
from sheetsync.services.scheduler import start_scheduler, stop_scheduler

# ── Structured logging setup ──────────────────────────────────────────────────
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)

log = structlog.get_logger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("app.starting", env=settings.ENVIRONMENT, version=settings.APP_VERSION)
    await init_db()
    app.state.http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
    start_scheduler(SessionLocal, app.state.http_client)
    log.info("app.ready")
    yield
    log.info("app.shutting_down")
    stop_scheduler()
    await app.state.http_client.aclose()
    await close_db()
    log.info("app.stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["X-API-Key", "Content-Type"],
)

# ── Exception handlers ────────────────────────────────────────────────────────
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(commands_router)
app.include_router(data_router)
app.include_router(admin_router)
