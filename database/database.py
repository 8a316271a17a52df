import logging
import os
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from utils.constants import DATABASE_URL

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Async engine used for connectivity checks; request handlers use the sync repositories."""

    def __init__(self):
        self.engine: Optional[AsyncEngine] = None
        self.async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def _setup_database(self):
        """Initialize the database engine and session factory."""
        if not DATABASE_URL:
            raise RuntimeError("DATABASE_URL environment variable not set")

        # Convert the URL to its async driver
        if DATABASE_URL.startswith("postgresql://"):
            database_url = DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")
        elif DATABASE_URL.startswith("sqlite://"):
            database_url = DATABASE_URL.replace("sqlite://", "sqlite+aiosqlite:///")
        else:
            database_url = DATABASE_URL

        self.engine = create_async_engine(
            database_url,
            echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            pool_pre_ping=True,
            pool_recycle=3600,
        )

        self.async_session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    async def ping(self) -> bool:
        """Run ``SELECT 1`` against the configured database."""
        if self.async_session_factory is None:
            self._setup_database()
        async with self.async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1

    async def close(self):
        """Close the database engine."""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.async_session_factory = None
            logger.info("Database engine disposed")


# Global database manager instance
db_manager = DatabaseManager()
