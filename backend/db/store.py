"""Generic query/upsert client over the async SQLAlchemy session factory.

Rows are keyed by the model's primary key; callers get plain dicts back so
nothing outside this module holds an ORM instance past its session.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.errors import StoreFailed, Unavailable
from utils.db import safe_commit

logger = logging.getLogger(__name__)


class DataStore:
    def __init__(self, session_factory: Optional[async_sessionmaker]):
        self._session_factory = session_factory

    @property
    def configured(self) -> bool:
        return self._session_factory is not None

    @asynccontextmanager
    async def session(self, error_message: str = "Data store request failed"):
        if self._session_factory is None:
            raise Unavailable("Database not configured", details="Set DATABASE_URL in .env")
        async with self._session_factory() as db:
            try:
                yield db
            except (SQLAlchemyError, OSError) as e:
                await db.rollback()
                logger.error(f"{error_message}: {e}")
                raise StoreFailed(error_message, details=e.__class__.__name__) from e

    async def upsert(self, model, values: dict, error_message: str = "Failed to save record") -> dict:
        async with self.session(error_message) as db:
            row = await db.merge(model(**values))
            await safe_commit(db, error_message)
            return row.to_dict()

    async def fetch_one(self, model, key: Any, error_message: str = "Failed to fetch record") -> Optional[dict]:
        async with self.session(error_message) as db:
            row = await db.get(model, key)
            return row.to_dict() if row is not None else None

    async def update(self, model, key: Any, values: dict, error_message: str = "Failed to update record") -> bool:
        async with self.session(error_message) as db:
            row = await db.get(model, key)
            if row is None:
                return False
            for name, value in values.items():
                setattr(row, name, value)
            await safe_commit(db, error_message)
            return True

    async def delete(self, model, key: Any, error_message: str = "Failed to delete record") -> int:
        async with self.session(error_message) as db:
            row = await db.get(model, key)
            if row is None:
                return 0
            await db.delete(row)
            await safe_commit(db, error_message)
            return 1
