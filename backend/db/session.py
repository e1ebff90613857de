from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy import event
from core.config import settings
import logging
from typing import Optional

Base = declarative_base()
logger = logging.getLogger(__name__)

def _to_async_database_url(url: str) -> str:
    if not url:
        return url
    # Supabase and most hosted Postgres hand out plain postgres:// URLs
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("mysql+pymysql://"):
        return url.replace("mysql+pymysql://", "mysql+aiomysql://", 1)
    if url.startswith("mysql://"):
        return url.replace("mysql://", "mysql+aiomysql://", 1)
    return url


def build_engine(url: str) -> AsyncEngine:
    async_url = _to_async_database_url(url)
    if async_url.startswith("sqlite"):
        # sqlite does not accept pool sizing arguments
        return create_async_engine(async_url, future=True, echo=False)
    return create_async_engine(
        async_url,
        future=True,
        echo=False,
        pool_pre_ping=settings.DB_PRE_PING,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine: Optional[AsyncEngine] = None
SessionLocal: Optional[async_sessionmaker] = None

if settings.DATABASE_URL:
    engine = build_engine(settings.DATABASE_URL)
    SessionLocal = build_session_factory(engine)
else:
    logger.warning("DATABASE_URL not set - payout and 2FA storage disabled")

# Optional: lightweight pool logging
if engine is not None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        logger.debug("DB connect: id=%s", id(connection_record))

    @event.listens_for(engine.sync_engine, "close")
    def _on_close(dbapi_connection, connection_record):
        logger.debug("DB close: id=%s", id(connection_record))
