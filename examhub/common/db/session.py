"""
Database Session Management

This module provides the unit-of-work boundary used by the exam services.
Each service operation runs inside one ``transaction``: everything commits
together or rolls back together, and store failures surface as
``PersistenceError``.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from examhub.common.exceptions import PersistenceError
from examhub.common.logger import app_logger

logger = app_logger.getChild("db.session")

SessionFactory = Callable[[], AsyncSession]


@asynccontextmanager
async def transaction(session_factory: SessionFactory) -> AsyncIterator[AsyncSession]:
    """
    Open a session and run the enclosed block in a single transaction.

    Example:
        async with transaction(factory) as session:
            await session.execute(stmt)

    Raises:
        PersistenceError: If the store raises while executing or committing
    """
    session = session_factory()
    try:
        async with session.begin():
            yield session
    except SQLAlchemyError as e:
        logger.error(f"Database transaction failed: {e}")
        raise PersistenceError(str(e), e) from e
    finally:
        await session.close()
