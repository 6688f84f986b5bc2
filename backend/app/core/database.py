"""
Database configuration and connection management.

The engine and session factory are owned by the process entry point: the
application lifespan calls ``init_database`` on startup, keeps the result on
``app.state`` and disposes it on shutdown. Request handlers receive sessions
through the ``get_db`` dependency.
"""

from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from loguru import logger

from .config import settings

# Create declarative base
Base = declarative_base()


def to_async_url(database_url: str) -> str:
    """Convert a sync PostgreSQL URL to its asyncpg form."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


@dataclass
class Database:
    """Engine plus session factory for one process."""

    engine: AsyncEngine
    session_factory: async_sessionmaker

    async def dispose(self) -> None:
        await self.engine.dispose()


def init_database(database_url: str = None, echo: bool = None) -> Database:
    """Create the async engine and session factory."""
    url = to_async_url(database_url or settings.DATABASE_URL)
    engine_kwargs = {"echo": settings.DEBUG if echo is None else echo}
    if url.startswith("postgresql"):
        engine_kwargs.update(pool_pre_ping=True, pool_recycle=300)

    engine = create_async_engine(url, **engine_kwargs)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return Database(engine=engine, session_factory=session_factory)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Get database session.

    Yields:
        AsyncSession: Database session
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception as e:
            # HTTP errors are expected API responses, not database failures
            if not isinstance(e, HTTPException):
                logger.error("Database session error: {}", str(e))
            await session.rollback()
            raise


async def create_tables(engine: AsyncEngine):
    """Create database tables."""
    try:
        async with engine.begin() as conn:
            # Import all models to ensure they're registered
            from app import models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise


async def drop_tables(engine: AsyncEngine):
    """Drop all database tables."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            logger.info("Database tables dropped successfully")
    except Exception as e:
        logger.error(f"Error dropping database tables: {e}")
        raise
