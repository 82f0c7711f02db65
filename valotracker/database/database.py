from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from valotracker.config import Config
from valotracker.database.models import Base
from valotracker.utils.logger import setup_logger

SQLITE_PREFIX = 'sqlite:///'
ASYNC_SQLITE_PREFIX = 'sqlite+aiosqlite:///'


def async_database_url(database_url: str) -> str:
    """Plain sqlite URLs are switched to the aiosqlite driver."""
    if database_url.startswith(SQLITE_PREFIX):
        return ASYNC_SQLITE_PREFIX + database_url[len(SQLITE_PREFIX):]
    return database_url


class Database:
    """Engine and session factory for linked accounts and stored bot state."""

    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = async_database_url(database_url or Config.DATABASE_URL)
        self.engine = None
        self.async_session = None

    def _ensure_sqlite_directory(self):
        if not self.database_url.startswith(ASYNC_SQLITE_PREFIX):
            return
        path = self.database_url[len(ASYNC_SQLITE_PREFIX):]
        if path and path != ':memory:':
            Path(path).parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self):
        """Connect and create the tables"""
        self.logger.info("Initializing database...")
        self._ensure_sqlite_directory()

        self.engine = create_async_engine(
            self.database_url,
            echo=Config.DEBUG,
        )
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @property
    def session_factory(self):
        """Async session factory for services built on BaseService"""
        return self.async_session

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")
