"""
Centralized database connection and session management for the leaderboard.

Features:
- Transaction context manager with automatic commit / rollback
- Read-only session context manager
- Connection and transaction metrics
- Retry logic on initialization
- Slow session logging (>5s warnings)
- Table creation from ``Base.metadata``
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from seedfarm.core.config.config import Config
from seedfarm.core.database.base import Base
from seedfarm.core.logging.logger import get_logger, set_log_context

logger = get_logger(__name__)

SLOW_SESSION_SECONDS = 5.0


@dataclass
class ConnectionMetrics:
    """Metrics for database connection monitoring."""

    total_sessions_created: int = 0
    active_sessions: int = 0
    total_transactions: int = 0
    total_commits: int = 0
    total_rollbacks: int = 0
    failed_connections: int = 0
    slow_sessions: int = 0
    last_health_check: Optional[datetime] = None
    health_check_failures: int = 0

    def record_session_start(self) -> None:
        self.total_sessions_created += 1
        self.active_sessions += 1

    def record_session_end(self, duration: float) -> None:
        self.active_sessions = max(0, self.active_sessions - 1)
        if duration > SLOW_SESSION_SECONDS:
            self.slow_sessions += 1

    def record_health_check(self, success: bool) -> None:
        self.last_health_check = datetime.now(timezone.utc)
        if not success:
            self.health_check_failures += 1

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_sessions": self.total_sessions_created,
            "active_sessions": self.active_sessions,
            "total_transactions": self.total_transactions,
            "commits": self.total_commits,
            "rollbacks": self.total_rollbacks,
            "failed_connections": self.failed_connections,
            "slow_sessions": self.slow_sessions,
            "health_check_failures": self.health_check_failures,
            "last_health_check": (
                self.last_health_check.isoformat() if self.last_health_check else None
            ),
        }


def _engine_kwargs(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection, otherwise every session sees an empty database
        return {"poolclass": StaticPool}
    if Config.is_testing():
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True, "pool_recycle": 3600}


class DatabaseService:
    """
    Process-wide async engine and session factory.

    Usage:
        # Transaction (auto-commit on success)
        >>> async with DatabaseService.get_transaction() as session:
        ...     session.add(LeaderboardEntry(username="farmer", character_id="foxy"))

        # Read-only (no auto-commit)
        >>> async with DatabaseService.get_session() as session:
        ...     result = await session.execute(select(LeaderboardEntry))
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _metrics: Optional[ConnectionMetrics] = None
    _health_check_query: str = "SELECT 1"

    @classmethod
    async def initialize(
        cls,
        database_url: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        create_tables: bool = True,
    ) -> None:
        """
        Create the engine and session factory, verifying connectivity.

        Args:
            database_url: Overrides Config.DATABASE_URL
            max_retries: Connection attempts before giving up
            retry_delay: Seconds between attempts
            create_tables: Create missing tables after connecting

        Raises:
            SQLAlchemyError | OSError: If every attempt fails
        """
        if cls._engine is not None:
            logger.warning("DatabaseService already initialized")
            return

        url = database_url or Config.DATABASE_URL
        cls._metrics = ConnectionMetrics()

        for attempt in range(1, max_retries + 1):
            try:
                cls._engine = create_async_engine(url, echo=Config.DATABASE_ECHO, **_engine_kwargs(url))
                cls._session_factory = async_sessionmaker(
                    cls._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )

                if not await cls.health_check():
                    raise OperationalError(cls._health_check_query, None, RuntimeError("health check failed"))

                if create_tables:
                    await cls.create_tables()

                logger.info(
                    f"DatabaseService initialized successfully on attempt {attempt}",
                    extra={"dialect": cls._engine.dialect.name},
                )
                return

            except (SQLAlchemyError, OSError) as e:
                cls._metrics.failed_connections += 1
                logger.error(
                    f"Failed to initialize DatabaseService (attempt {attempt}/{max_retries}): {e}",
                    exc_info=True,
                )
                if cls._engine is not None:
                    await cls._engine.dispose()
                cls._engine = None
                cls._session_factory = None

                if attempt < max_retries:
                    await asyncio.sleep(retry_delay)
                else:
                    logger.critical("DatabaseService initialization failed after all retries")
                    raise

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose of the engine; safe to call when never initialized."""
        if cls._engine is None:
            return

        await cls._engine.dispose()
        if cls._metrics:
            logger.info(
                "DatabaseService shutdown complete",
                extra={"metrics": cls._metrics.get_summary()},
            )
        cls._engine = None
        cls._session_factory = None

    @classmethod
    async def health_check(cls) -> bool:
        if cls._engine is None:
            return False
        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text(cls._health_check_query))
            success = True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Database health check failed: {e}")
            success = False

        if cls._metrics:
            cls._metrics.record_health_check(success)
        return success

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session without automatic commit, for reads.

        Raises:
            RuntimeError: If DatabaseService not initialized
        """
        if cls._session_factory is None:
            raise RuntimeError("DatabaseService not initialized")

        if cls._metrics:
            cls._metrics.record_session_start()
        set_log_context(operation="db_read")

        start_time = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                yield session
            except (OperationalError, DBAPIError) as e:
                logger.error(
                    f"Database error in session: {e}",
                    exc_info=True,
                    extra={"error_type": type(e).__name__, "db_operation": "read"},
                )
                await session.rollback()
                raise
            finally:
                cls._finish(start_time, "read")

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session that commits on clean exit and rolls back on any exception.

        Raises:
            RuntimeError: If DatabaseService not initialized
        """
        if cls._session_factory is None:
            raise RuntimeError("DatabaseService not initialized")

        if cls._metrics:
            cls._metrics.record_session_start()
            cls._metrics.total_transactions += 1
        set_log_context(operation="db_transaction")

        start_time = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                yield session
                await session.commit()
                if cls._metrics:
                    cls._metrics.total_commits += 1
                logger.debug("Transaction committed successfully")
            except Exception as e:
                await session.rollback()
                if cls._metrics:
                    cls._metrics.total_rollbacks += 1
                logger.debug(
                    f"Transaction rolled back: {e!r}",
                    extra={"error_type": type(e).__name__, "db_operation": "transaction"},
                )
                raise
            finally:
                cls._finish(start_time, "transaction")

    @classmethod
    def _finish(cls, start_time: float, db_operation: str) -> None:
        duration = time.perf_counter() - start_time
        if cls._metrics:
            cls._metrics.record_session_end(duration)
        if duration > SLOW_SESSION_SECONDS:
            logger.warning(
                f"Slow {db_operation} session: {duration:.2f}s",
                extra={"duration_seconds": duration, "db_operation": db_operation},
            )

    @classmethod
    async def create_tables(cls) -> None:
        """Create all tables registered on ``Base.metadata``; idempotent."""
        # Registers the models on Base.metadata
        from seedfarm.modules.leaderboard import model  # noqa: F401

        if cls._engine is None:
            raise RuntimeError("DatabaseService not initialized")

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    @classmethod
    async def drop_tables(cls) -> None:
        """
        Drop all tables. Refused in production.

        Raises:
            RuntimeError: If called in production or before initialize
        """
        if cls._engine is None:
            raise RuntimeError("DatabaseService not initialized")
        if Config.is_production():
            raise RuntimeError("Cannot drop tables in production environment")

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database tables dropped")

    @classmethod
    def get_metrics_summary(cls) -> Dict[str, Any]:
        return cls._metrics.get_summary() if cls._metrics else {}
