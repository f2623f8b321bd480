"""Database Session Manager — async engine and sessions for the document store.

Invariants:
    - A session that raises is rolled back before the error leaves it
    - SQLAlchemy failures leave as DatabaseError (core/errors.py), tagged with
      the failing stage
    - Stale pooled connections are replaced (pool_pre_ping)

Design Decisions:
    - The process-wide manager is created by init_db from the app lifespan and
      read by the readiness endpoint; tests build their own managers
    - expire_on_commit=False: documents are read after their session closes
    - SQLite URLs skip pool sizing (its pools do not accept those arguments)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from reapi.core.errors import DatabaseError
from reapi.db.base import Base
import reapi.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)

# checked in order; subclasses before their bases
_FAILURES = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
)


def _describe_failure(error: SQLAlchemyError) -> tuple[str, str]:
    for kind, message, stage in _FAILURES:
        if isinstance(error, kind):
            return message, stage
    return "Database operation failed", "unknown"


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            message, stage = _describe_failure(e)
            logger.error(f"{message}: {e}")
            raise DatabaseError(message, stage) from e
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create tables from the ORM metadata (tests and local SQLite)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (used by the readiness endpoint)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# set by init_db during app startup
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager
