"""
Database initialization and connection management.

This module provides functions for:
1. Creating the async engine and session factory
2. Creating the schema directly or through Alembic migrations
3. Disposing of the connection pool on shutdown
"""

import os
from typing import Any, Dict, Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from examhub.common.logger import app_logger
from examhub.database.base import metadata
# Register the tables on the shared metadata
from examhub.database import models  # noqa: F401

logger = app_logger.getChild("database.init_db")

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "alembic")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Get the global async engine instance."""
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call initialize_database() first.")
    return _engine


def get_session_factory() -> sessionmaker:
    """Get the global async session factory."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialized. Call initialize_database() first.")
    return _session_factory


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    """Create a session factory producing ``AsyncSession`` objects bound to ``engine``."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def engine_kwargs(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
) -> Dict[str, Any]:
    """
    Get engine keyword arguments based on database type.

    SQLite does not use a sized queue pool, so pooling options only apply
    to server databases.
    """
    kwargs: Dict[str, Any] = {"echo": echo, "future": True}
    if not database_url.startswith("sqlite"):
        kwargs.update({
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_timeout": pool_timeout,
            "pool_pre_ping": True,
        })
    return kwargs


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def drop_schema(engine: AsyncEngine) -> None:
    """Drop every table."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


async def initialize_database(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    create_tables: bool = True,
) -> AsyncEngine:
    """
    Initialize the async database engine and session factory.

    Args:
        database_url: Database connection URL
        echo: Whether to echo SQL statements
        pool_size: Connection pool size
        max_overflow: Maximum number of connections to allow above pool_size
        pool_timeout: Timeout for getting a connection from the pool
        create_tables: Whether to create missing tables from the ORM metadata

    Returns:
        AsyncEngine instance
    """
    global _engine, _session_factory

    try:
        logger.info(f"Initializing database with URL: {database_url[:10]}... and pool size: {pool_size}")

        _engine = create_async_engine(
            database_url,
            **engine_kwargs(database_url, echo, pool_size, max_overflow, pool_timeout)
        )
        _session_factory = create_session_factory(_engine)

        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        if create_tables:
            await create_schema(_engine)

        logger.info("Database engine initialized successfully")
        return _engine

    except Exception as e:
        logger.error(f"Failed to initialize async database: {str(e)}")
        raise


async def close_database() -> None:
    """Close the database engine and all connections."""
    global _engine, _session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database engine closed successfully")


def run_migrations(database_url: str, revision: str = "head") -> None:
    """
    Upgrade the database to ``revision`` with Alembic.

    Must be called outside a running event loop; the migration environment
    drives its own async engine.
    """
    config = Config()
    config.set_main_option("script_location", MIGRATIONS_DIR)
    config.set_main_option("sqlalchemy.url", database_url)
    logger.info(f"Running migrations up to {revision}")
    command.upgrade(config, revision)
