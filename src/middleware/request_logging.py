"""
Development request logging: one line per request with status and timing
"""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        size = response.headers.get("content-length", "-")
        logger.info(f"{request.method} {path} {response.status_code} {duration_ms:.3f} ms - {size}")
        return response
