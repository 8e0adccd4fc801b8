"""Database connection utilities for the PostgreSQL executor."""

import logging
from typing import Optional
import asyncpg
from asyncpg import Pool

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages the asyncpg connection pool."""

    def __init__(self, settings: Optional[Settings] = None):
        self.pool: Optional[Pool] = None
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    async def initialize(self) -> None:
        """Initialize the database connection pool."""
        if self.pool is None:
            settings = self.settings
            self.pool = await asyncpg.create_pool(
                settings.database_url,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=settings.db_command_timeout
            )
            logger.info("Database connection pool initialized")

    async def close(self) -> None:
        """Close the database connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database connections closed")

    async def get_pool(self) -> Pool:
        """Get the connection pool, creating it on first use."""
        if not self.pool:
            await self.initialize()
        return self.pool


# Global database manager instance
db_manager = DatabaseManager()


async def get_db_pool() -> Pool:
    """Get the database connection pool."""
    return await db_manager.get_pool()
