"""
Configuration settings for the User REST API
"""

import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Environment configuration
ENV = os.getenv("ENV", "production")  # development or production
DEVELOPMENT = ENV.lower() == "development"
PORT = int(os.getenv("PORT", 3000))

# Database configuration defaults, overridable via DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD
DATABASE_DEFAULTS = {
    "host": "localhost",
    "port": "5432",
    "database": "user-data",
    "user": "postgres",
    "password": "123456",
}

API_VERSION = "2.0.0"

# CORS settings
ALLOWED_ORIGINS = ["*"]


def get_database_config() -> dict:
    """Connection keyword arguments for asyncpg, read from the environment at call time"""
    config = {
        "host": os.getenv("DB_HOST", DATABASE_DEFAULTS["host"]),
        "port": os.getenv("DB_PORT", DATABASE_DEFAULTS["port"]),
        "database": os.getenv("DB_NAME", DATABASE_DEFAULTS["database"]),
        "user": os.getenv("DB_USER", DATABASE_DEFAULTS["user"]),
        "password": os.getenv("DB_PASSWORD", DATABASE_DEFAULTS["password"]),
    }
    config["port"] = int(config["port"])
    return config

logger.info(f"Environment: {ENV}")
