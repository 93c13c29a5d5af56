"""
Centralized Error Handling and Logging
Every failure leaves the API as the same JSON envelope:
{"success": false, "error": <category>, "message": <detail>}
"""

import json
import logging
import traceback
import uuid
from datetime import datetime
from typing import Any, Optional
from contextvars import ContextVar

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from services.errors import UserServiceError

# Context variable for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)

# error_type -> (status code, envelope error category)
ERROR_STATUS = {
    "VALIDATION_ERROR": (400, "Bad Request"),
    "CONFLICT": (400, "Bad Request"),
    "RESOURCE_NOT_FOUND": (404, "Not Found"),
}
DEFAULT_ERROR_STATUS = (500, "Server Error")


class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    SENSITIVE_FIELD_PATTERNS = ['password', 'token', 'secret', 'authorization', 'cookie']
    INCLUDE_TRACE_ID = True

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Any) -> Any:
        """Recursively redact sensitive values before they reach the logs"""
        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(key) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        return data


class StructuredLogger:
    """Structured logging with consistent format and context"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[Exception] = None,
        include_traceback: bool = True
    ) -> str:
        """Log structured error with full context and return its trace id"""
        trace_id = request_id_var.get('') or str(uuid.uuid4())[:8]

        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": "ERROR"
        }

        if request:
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "headers": ErrorHandlingConfig.sanitize_data(dict(request.headers)),
                "client_ip": request.client.host if request.client else None
            }

        if exception:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": str(exception)
            }
            if include_traceback:
                log_entry["exception"]["traceback"] = "".join(
                    traceback.format_exception(type(exception), exception, exception.__traceback__)
                )

        logger.error(json.dumps(log_entry, indent=2, default=str))
        return trace_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a trace id to every request and echoes it in X-Trace-ID"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        request_id_var.set(trace_id)
        request.state.trace_id = trace_id

        try:
            response = await call_next(request)
        except Exception as e:
            # Answer here so the error envelope still passes through CORS and security headers
            response = await general_exception_handler(request, e)
        response.headers["X-Trace-ID"] = trace_id
        return response


def error_response(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    """Build the failure envelope"""
    content = {"success": False, "error": error, "message": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def service_error_response(exc: UserServiceError) -> JSONResponse:
    """Translate a typed service error into its HTTP envelope"""
    status_code, error = ERROR_STATUS.get(exc.error_type, DEFAULT_ERROR_STATUS)
    return error_response(status_code, error, exc.message)


# Global Exception Handlers
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unmatched routes and other framework-raised HTTP errors"""
    if exc.status_code in (404, 405):
        # Unknown path and unknown method on a known path look the same to clients
        return error_response(404, "Not Found", f"Not Found - {request.url.path}")

    if exc.status_code >= 500:
        StructuredLogger.log_error(
            f"http_{exc.status_code}",
            f"HTTP {exc.status_code}: {exc.detail}",
            request=request,
            exception=exc,
            include_traceback=False
        )
        return error_response(exc.status_code, "Server Error", str(exc.detail))

    return error_response(exc.status_code, "Bad Request", str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON, non-object bodies and bad path/query parameters"""
    problems = []
    for error in exc.errors():
        location = " -> ".join(str(loc) for loc in error.get("loc", []))
        problems.append(f"{location}: {error.get('msg', 'Invalid value')}")

    logger.info(f"Request validation failed for {request.method} {request.url.path}: {problems}")

    return error_response(400, "Bad Request", "Invalid request: " + "; ".join(problems))


async def service_exception_handler(request: Request, exc: UserServiceError) -> JSONResponse:
    """Service errors that escaped a handler"""
    if exc.error_type not in ERROR_STATUS:
        StructuredLogger.log_error(
            exc.error_type.lower(),
            exc.message,
            request=request,
            exception=exc,
            include_traceback=False
        )
    return service_error_response(exc)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions"""
    trace_id = StructuredLogger.log_error(
        "internal_server_error",
        f"Unhandled exception: {str(exc)}",
        request=request,
        exception=exc,
        include_traceback=True
    )

    # Don't expose internal details
    extra = {"trace_id": trace_id} if ErrorHandlingConfig.INCLUDE_TRACE_ID else {}
    return error_response(500, "Server Error", "An unexpected error occurred", **extra)


def setup_error_handling(app):
    """Setup error handling for FastAPI app"""

    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(UserServiceError, service_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Centralized error handling initialized")
