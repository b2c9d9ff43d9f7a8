"""
Database Session Management

Provides the async SQLAlchemy engine, the session factory, and the single
serialized access path to the store.

Access Discipline
-----------------
Every read or write burst goes through `Database.transaction()`, which holds
one asyncio.Lock for the lifetime of the session. At most one burst is in
flight at a time and waiters are served first-come-first-served. Slow work
(embedding inference) must happen before entering a transaction.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from .models import Base
from ..config import settings
from ..core.errors import PersistenceError, RagError

logger = logging.getLogger("rag.db")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create an async engine, preparing the SQLite file location and enabling
    foreign-key enforcement on every connection.
    """
    url = make_url(database_url or settings.database_url)

    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(
        url,
        echo=False,  # Set True for SQL debugging
    )

    if url.get_backend_name() == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine


class Database:
    """
    Owner of the engine, the session factory and the storage lock.
    """

    def __init__(self, engine: Optional[AsyncEngine] = None) -> None:
        self.engine = engine or create_engine()
        self._sessionmaker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        self._lock = asyncio.Lock()

    @classmethod
    def from_url(cls, database_url: str) -> "Database":
        return cls(create_engine(database_url))

    async def create_all(self) -> None:
        """
        Create all tables if they do not exist yet.
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to create schema: {exc}") from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Serialized unit of work.

        Usage:
            async with db.transaction() as session:
                ...

        Commits on success and rolls back on any exception. SQLAlchemy
        failures are re-raised as PersistenceError; RAG errors raised by the
        body propagate unchanged.
        """
        async with self._lock:
            async with self._sessionmaker() as session:
                try:
                    yield session
                    await session.commit()
                except RagError:
                    await session.rollback()
                    raise
                except SQLAlchemyError as exc:
                    await session.rollback()
                    logger.error("Storage operation failed: %s", exc)
                    raise PersistenceError(
                        f"Storage operation failed: {type(exc).__name__}: {exc}"
                    ) from exc
                except Exception:
                    await session.rollback()
                    raise

    async def dispose(self) -> None:
        await self.engine.dispose()
