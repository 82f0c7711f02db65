"""
Base class for services that keep their state in the tracker database.

Subclasses get a commit-or-rollback session scope and a retry helper for
SQLite's transient "database is locked" failures.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class BaseService:
    """Async session management shared by the database-backed services."""

    def __init__(self, session_factory):
        """
        Args:
            session_factory: ``Database.session_factory``
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session committed on clean exit and rolled back on error."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def execute_with_retry(self, func: Callable[[], Awaitable[Any]],
                                 operation: Optional[str] = None, max_retries: int = 3) -> Any:
        """
        Run ``func``, retrying operational errors (locked or busy database).

        Other errors propagate on the first attempt.
        """
        operation = operation or getattr(func, '__name__', 'database operation')
        for attempt in range(max_retries):
            try:
                return await func()
            except OperationalError as e:
                if attempt == max_retries - 1:
                    raise
                logger.warning(f"{operation} failed (attempt {attempt + 1}/{max_retries}), retrying: {e}")
                await asyncio.sleep(0.1 * (2 ** attempt))
