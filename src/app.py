"""
User REST API with PostgreSQL
CRUD and search over a single users table
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database.connection import Database
from services.users_service import UsersService
from middleware.request_logging import RequestLoggingMiddleware
from middleware.security_headers import SecurityHeadersMiddleware
from api.routes import health, root, users
from utils.error_handling import setup_error_handling

logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None, development: Optional[bool] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        database: Database handle to use; a PostgreSQL pool from settings by default
        development: Enable request logging; follows ENV by default
    """
    database = database or Database()
    if development is None:
        development = settings.DEVELOPMENT

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect and ensure the schema before serving, close the pool on shutdown"""
        await database.initialize()
        app.state.database = database
        app.state.users_service = UsersService(database)
        yield
        await database.close()

    app = FastAPI(
        title="User REST API",
        description="CRUD REST API for users backed by PostgreSQL",
        version=settings.API_VERSION,
        lifespan=lifespan
    )

    # Setup centralized error handling (innermost middleware)
    setup_error_handling(app)

    if development:
        app.add_middleware(RequestLoggingMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it wraps everything else
    app.add_middleware(SecurityHeadersMiddleware)

    # Include API routes
    app.include_router(root.router, tags=["Info"])
    app.include_router(health.router, tags=["Health"])
    app.include_router(users.router, prefix="/api/users", tags=["Users"])

    return app


app = create_app()

# FastAPI app instance is exported for use by uvicorn
# Server startup is handled by main.py at the project root
