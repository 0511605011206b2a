"""Database configuration with SQLAlchemy 2.0 async support."""

from collections.abc import AsyncGenerator

import structlog
from fastapi import Request
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = structlog.get_logger()

# Naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = MetaData(naming_convention=convention)


class Database:
    """Owns the async engine and the session factory built on it.

    Created once at application startup and disposed at shutdown:

        database = Database(settings.database_url, echo=settings.debug)
        async with database.session_factory() as session:
            ...
        await database.close()
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        engine_options: dict = {"echo": echo, "pool_pre_ping": True}
        if not url.startswith("sqlite"):
            engine_options.update(
                pool_size=5,  # Number of connections to keep in the pool
                max_overflow=10,  # Additional connections beyond pool_size
                pool_timeout=30,  # Seconds to wait for a connection
                pool_recycle=1800,  # Recycle connections after 30 minutes
            )
        self.engine: AsyncEngine = create_async_engine(url, **engine_options)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Create all tables.

        Note: In production, use Alembic migrations instead.
        This is useful for testing or initial development.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides an async database session.

    Usage:
        @router.get("/items")
        async def get_items(session: AsyncSession = Depends(get_async_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
