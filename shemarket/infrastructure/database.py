"""Database Session Manager — async connection pool, automatic rollback, bounded store calls.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - Connection/driver failures mapped to StoreUnavailableError (core/errors.py)
    - A constraint violation that escapes a service is a 400, never a retryable 503
    - Every BoundedStore round-trip completes or fails within timeout_seconds
    - IntegrityError passes through BoundedStore untouched: services use it for
      get-or-insert convergence

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: prevents lazy-load issues in async context
    - asyncio.wait_for per round-trip: the timeout covers pool checkout and the query
"""

import asyncio
import logging
from collections.abc import Awaitable
from contextlib import asynccontextmanager
from typing import AsyncGenerator, TypeVar

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from shemarket.core.errors import MarketValidationError, StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
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
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f"DB integrity error: {e}")
            raise MarketValidationError(
                "request conflicts with stored data", "body",
            ) from e
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise StoreUnavailableError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise StoreUnavailableError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise StoreUnavailableError("Database operation failed", "unknown")
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for the readiness route)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False


class BoundedStore:
    """AsyncSession facade whose every round-trip is time-bounded."""

    def __init__(self, db: AsyncSession, timeout_seconds: float = 5.0):
        self.db = db
        self.timeout_seconds = timeout_seconds

    def add(self, instance) -> None:
        self.db.add(instance)

    async def execute(self, statement):
        return await self._bounded(self.db.execute(statement), "query")

    async def scalar(self, statement):
        result = await self.execute(statement)
        return result.scalar_one_or_none()

    async def scalars(self, statement) -> list:
        result = await self.execute(statement)
        return list(result.scalars().all())

    async def get(self, model, ident):
        return await self._bounded(self.db.get(model, ident), "get")

    async def flush(self) -> None:
        await self._bounded(self.db.flush(), "flush")

    async def commit(self) -> None:
        await self._bounded(self.db.commit(), "commit")

    async def refresh(self, instance) -> None:
        await self._bounded(self.db.refresh(instance), "refresh")

    async def rollback(self) -> None:
        await self._bounded(self.db.rollback(), "rollback")

    async def _bounded(self, awaitable: Awaitable[T], operation: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                f"Store {operation} exceeded {self.timeout_seconds}s",
                extra={"operation": operation, "error_code": "UNAVAILABLE"},
            )
            raise StoreUnavailableError(
                f"timed out after {self.timeout_seconds}s", operation,
            )
        except IntegrityError:
            raise
        except (OperationalError, DBAPIError) as e:
            logger.error(
                f"Store {operation} failed: {e}",
                extra={"operation": operation, "error_code": "UNAVAILABLE"},
            )
            raise StoreUnavailableError("Connection or driver error", operation)


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
