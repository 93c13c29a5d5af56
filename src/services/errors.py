"""
Typed errors raised by the service layer
"""

from typing import List, Optional


class UserServiceError(Exception):
    """Base class for service failures; error_type tells handlers how to respond"""

    error_type = "SERVICE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(UserServiceError):
    """Client supplied semantically invalid data"""

    error_type = "VALIDATION_ERROR"

    def __init__(self, errors: List[str]):
        super().__init__(", ".join(errors))
        self.errors = list(errors)


class DuplicateError(UserServiceError):
    """Unique constraint violated"""

    error_type = "CONFLICT"

    def __init__(self, message: str = "Email already exists"):
        super().__init__(message)


class NotFoundError(UserServiceError):
    error_type = "RESOURCE_NOT_FOUND"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class StorageError(UserServiceError):
    """Database failure not otherwise classified"""

    error_type = "DATABASE_ERROR"

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause
