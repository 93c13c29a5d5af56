"""
Database connection and pool management
"""

import asyncpg
import logging
from typing import Any, Dict, Optional

from config.settings import get_database_config

logger = logging.getLogger(__name__)

CREATE_USERS_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS users (
      id SERIAL PRIMARY KEY,
      name VARCHAR(255) NOT NULL,
      email VARCHAR(255) NOT NULL UNIQUE,
      age INTEGER NOT NULL CHECK (age >= 0 AND age <= 150),
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
      updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
"""


class Database:
    """Owns the asyncpg pool for the lifetime of the process"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or get_database_config()
        self.pool = None

    async def connect(self):
        """Create the connection pool and verify it answers"""
        try:
            self.pool = await asyncpg.create_pool(
                **self.config,
                min_size=1,
                max_size=10,
                command_timeout=60,
            )

            # Test connection
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Database connection error: {e}")
            logger.error("Make sure PostgreSQL is running and credentials are correct")
            raise

        logger.info(f"PostgreSQL connected: {self.config['database']} at {self.config['host']}:{self.config['port']}")

    async def create_users_table(self):
        """Create the users table if it doesn't exist"""
        async with self.pool.acquire() as conn:
            await conn.execute(CREATE_USERS_TABLE_SQL)
        logger.info("Users table ready")

    async def initialize(self):
        """Connect and ensure the schema exists"""
        await self.connect()
        await self.create_users_table()

    async def close(self):
        """Close database connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
        logger.info("Database connections closed")

    def acquire(self):
        """Acquire a connection from the pool"""
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        return self.pool.acquire()
