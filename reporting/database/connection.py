"""
Database Connection Management

Async SQLAlchemy 2.0 engine and session factory wrapped in an explicit
Database handle. The application owns one handle (stored on app.state);
query functions receive their AsyncSession as an argument.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from reporting.config.settings import DatabaseSettings

logger = structlog.get_logger(__name__)


class Database:
    """
    Connection pool handle.

    Example:
        database = Database.from_settings(settings.database)
        await database.connect()
        async with database.session() as session:
            page = await list_orders(session, filters)
    """

    def __init__(self, engine: AsyncEngine, pool_size: Optional[int] = None):
        self.engine = engine
        self.pool_size = pool_size
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        """Build a handle from database settings."""
        url = settings.get_url()
        engine_config = {
            "echo": settings.echo,
            "pool_pre_ping": True,
        }
        if url.startswith("postgresql"):
            # asyncpg manages its own connections
            engine_config["poolclass"] = NullPool
        engine = create_async_engine(url, **engine_config)
        return cls(engine, pool_size=settings.pool_size)

    async def connect(self) -> None:
        """Verify the store is reachable."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection established", url=self.engine.url.render_as_string(hide_password=True))
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database connection pool closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session.

        Commits when the block exits normally, rolls back on error.

        Yields:
            AsyncSession: Database session
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise
        finally:
            await session.close()

    async def check_health(self) -> dict:
        """
        Check database health status.

        Returns:
            dict: Health status with latency information
        """
        try:
            start = time.perf_counter()
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "latency_ms": round(latency_ms, 2),
                "pool_size": self.pool_size,
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "error": str(e),
            }


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's Database handle."""
    return request.app.state.database


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for request-scoped database sessions.

    Example:
        @router.get("/orders")
        async def orders(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with get_database(request).session() as session:
        yield session
