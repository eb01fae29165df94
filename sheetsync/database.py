from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
import structlog
from sheetsync.config import settings

log = structlog.get_logger(__name__)

_engine_kwargs = {"pool_pre_ping": True, "echo": False}
if not settings.is_sqlite:
    # SQLite pools do not accept sizing arguments
    _engine_kwargs.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=3600,
    )

engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)

SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def ensure_tables(session: AsyncSession) -> None:
    """Create the config/data/summary/logs tables if they are missing."""
    conn = await session.connection()
    await conn.run_sync(Base.metadata.create_all)
    await session.commit()


async def init_db(bind: AsyncEngine = engine) -> None:
    # Import for side effect: registers the tables on Base.metadata
    import sheetsync.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("database.initialized")


async def close_db(bind: AsyncEngine = engine) -> None:
    await bind.dispose()
    log.info("database.closed")
