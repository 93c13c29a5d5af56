"""
User models and validation rules
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import BaseModel

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

USER_FIELDS = ("name", "email", "age")
MIN_AGE = 0
MAX_AGE = 150


@dataclass
class UserValidationResult:
    """Outcome of validating a candidate user"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email.strip()) is not None


def _is_integer(value: Any) -> bool:
    # JSON has a single number type, so 30.0 counts as an integer
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def validate_user(candidate: Dict[str, Any]) -> UserValidationResult:
    """
    Validate a candidate user. Every rule is checked, so all problems
    are reported at once.

    Args:
        candidate: Mapping with name, email and age keys (any may be missing)

    Returns:
        UserValidationResult with the ordered list of violated rules
    """
    errors = []

    name = candidate.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Name is required and must be a non-empty string")

    email = candidate.get("email")
    if not isinstance(email, str) or not email:
        errors.append("Email is required and must be a string")
    elif not is_valid_email(email):
        errors.append("Email must be a valid email address")

    age = candidate.get("age")
    if age is None:
        errors.append("Age is required")
    elif not _is_integer(age):
        errors.append("Age must be an integer")
    elif age < MIN_AGE or age > MAX_AGE:
        errors.append(f"Age must be between {MIN_AGE} and {MAX_AGE}")

    return UserValidationResult(is_valid=not errors, errors=errors)


class UserCreateRequest(BaseModel):
    # Loosely typed; validate_user reports type problems
    name: Any = None
    email: Any = None
    age: Any = None


class UserUpdateRequest(BaseModel):
    name: Any = None
    email: Any = None
    age: Any = None

    def supplied_fields(self) -> Dict[str, Any]:
        """Fields the client actually sent, explicit nulls included"""
        return self.model_dump(exclude_unset=True)
