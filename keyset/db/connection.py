"""Database connection utilities for the pagination storage backend."""

import logging
from typing import Optional
import asyncpg
from asyncpg import Pool

from ..config import Settings, get_settings


logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages the asyncpg connection pool used to run paginated queries."""

    def __init__(self, config: Optional[Settings] = None):
        self.pool: Optional[Pool] = None
        self._config = config

    @property
    def config(self) -> Settings:
        return self._config or get_settings()

    async def initialize(self) -> None:
        """Initialize the database connection pool."""
        if self.pool is None:
            config = self.config
            self.pool = await asyncpg.create_pool(
                config.database_url,
                min_size=config.db_pool_min_size,
                max_size=config.db_pool_max_size,
                command_timeout=config.db_command_timeout
            )
            logger.info("Database connection pool initialized")

    async def close(self) -> None:
        """Close the database connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database connections closed")


# Global database manager instance
db_manager = DatabaseManager()


async def get_db_pool() -> Pool:
    """Get the database connection pool, creating it on first use."""
    if not db_manager.pool:
        await db_manager.initialize()
    return db_manager.pool
