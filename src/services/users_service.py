"""
Users service - validation and persistence for the users table
"""

import logging
from typing import Any, Dict, List, Tuple

import asyncpg
from fastapi import Request

from database.connection import Database
from models.user import USER_FIELDS, validate_user
from services.errors import DuplicateError, NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

# SERIAL ids are int4; anything outside this range cannot match a row
MAX_USER_ID = 2 ** 31 - 1

DATABASE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

INSERT_USER_SQL = """
    INSERT INTO users (name, email, age)
    VALUES ($1, $2, $3)
    RETURNING *;
"""
SELECT_ALL_USERS_SQL = "SELECT * FROM users ORDER BY id ASC;"
SELECT_USER_SQL = "SELECT * FROM users WHERE id = $1;"
DELETE_USER_SQL = "DELETE FROM users WHERE id = $1 RETURNING *;"
COUNT_USERS_SQL = "SELECT COUNT(*) AS count FROM users;"
SEARCH_USERS_SQL = """
    SELECT * FROM users
    WHERE name ILIKE $1 OR email ILIKE $1
    ORDER BY id ASC;
"""


def serialize_row(row) -> Dict[str, Any]:
    """Convert a record to a JSON-ready dict"""
    data = dict(row)
    for key, value in data.items():
        if hasattr(value, 'isoformat'):
            data[key] = value.isoformat()
    return data


def normalize_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Trim name, trim and lower-case email, store age as int"""
    normalized = {}
    if "name" in data:
        normalized["name"] = data["name"].strip()
    if "email" in data:
        normalized["email"] = data["email"].strip().lower()
    if "age" in data:
        normalized["age"] = int(data["age"])
    return normalized


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_update_query(user_id: int, changes: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """Build an UPDATE touching only the supplied fields plus updated_at"""
    assignments = []
    params = []

    for field_name in USER_FIELDS:
        if field_name in changes:
            params.append(changes[field_name])
            assignments.append(f"{field_name} = ${len(params)}")

    assignments.append("updated_at = CURRENT_TIMESTAMP")
    params.append(user_id)

    query = f"""
    UPDATE users
    SET {', '.join(assignments)}
    WHERE id = ${len(params)}
    RETURNING *;
    """
    return query, params


class UsersService:
    """Service for user management operations"""

    def __init__(self, database: Database):
        self.database = database

    async def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new user

        Args:
            data: Dictionary with name, email and age

        Returns:
            The stored row including id and timestamps
        """
        validation = validate_user(data)
        if not validation.is_valid:
            raise ValidationError(validation.errors)

        values = normalize_fields({key: data[key] for key in USER_FIELDS})

        async with self.database.acquire() as conn:
            try:
                row = await conn.fetchrow(INSERT_USER_SQL, values["name"], values["email"], values["age"])
            except asyncpg.UniqueViolationError as e:
                logger.warning(f"Unique constraint violation: {e}")
                raise DuplicateError()
            except DATABASE_ERRORS as e:
                logger.error(f"Database error during INSERT: {e}")
                raise StorageError(f"Error creating user: {e}", e)

        logger.info(f"Created user {row['id']} ({values['email']})")
        return serialize_row(row)

    async def get_all_users(self) -> List[Dict[str, Any]]:
        async with self.database.acquire() as conn:
            try:
                rows = await conn.fetch(SELECT_ALL_USERS_SQL)
            except DATABASE_ERRORS as e:
                logger.error(f"Database error: {e}")
                raise StorageError(f"Error fetching users: {e}", e)

        return [serialize_row(row) for row in rows]

    async def get_user_by_id(self, user_id: int) -> Dict[str, Any]:
        """
        Get a user by id

        Raises:
            NotFoundError: no row has that id
        """
        if not 0 < user_id <= MAX_USER_ID:
            raise NotFoundError()

        async with self.database.acquire() as conn:
            try:
                row = await conn.fetchrow(SELECT_USER_SQL, user_id)
            except DATABASE_ERRORS as e:
                logger.error(f"Database error: {e}")
                raise StorageError(f"Error fetching user: {e}", e)

        if not row:
            raise NotFoundError()
        return serialize_row(row)

    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update any subset of name, email and age

        The existing row overlaid with the supplied fields is validated as a
        whole, so a change that leaves the user invalid is rejected even if
        the changed field itself is fine.

        Args:
            user_id: Id of the user
            changes: Supplied fields; keys other than name/email/age are ignored

        Returns:
            The updated row
        """
        existing = await self.get_user_by_id(user_id)

        supplied = {key: changes[key] for key in USER_FIELDS if key in changes}
        candidate = {key: supplied.get(key, existing[key]) for key in USER_FIELDS}

        validation = validate_user(candidate)
        if not validation.is_valid:
            raise ValidationError(validation.errors)

        query, params = build_update_query(user_id, normalize_fields(supplied))

        async with self.database.acquire() as conn:
            try:
                row = await conn.fetchrow(query, *params)
            except asyncpg.UniqueViolationError as e:
                logger.warning(f"Unique constraint violation: {e}")
                raise DuplicateError()
            except DATABASE_ERRORS as e:
                logger.error(f"Database error during UPDATE: {e}")
                raise StorageError(f"Error updating user: {e}", e)

        # Deleted between the read and the write
        if not row:
            raise NotFoundError()

        logger.info(f"Updated user {user_id}: {sorted(supplied)}")
        return serialize_row(row)

    async def delete_user(self, user_id: int) -> Dict[str, Any]:
        """Delete a user and return the row as it was"""
        if not 0 < user_id <= MAX_USER_ID:
            raise NotFoundError()

        async with self.database.acquire() as conn:
            try:
                row = await conn.fetchrow(DELETE_USER_SQL, user_id)
            except DATABASE_ERRORS as e:
                logger.error(f"Database error during DELETE: {e}")
                raise StorageError(f"Error deleting user: {e}", e)

        if not row:
            raise NotFoundError()

        logger.info(f"Deleted user {user_id}")
        return serialize_row(row)

    async def search_users(self, term: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on name or email"""
        async with self.database.acquire() as conn:
            try:
                rows = await conn.fetch(SEARCH_USERS_SQL, f"%{escape_like(term)}%")
            except DATABASE_ERRORS as e:
                logger.error(f"Database error: {e}")
                raise StorageError(f"Error searching users: {e}", e)

        return [serialize_row(row) for row in rows]

    async def count_users(self) -> int:
        async with self.database.acquire() as conn:
            try:
                count = await conn.fetchval(COUNT_USERS_SQL)
            except DATABASE_ERRORS as e:
                logger.error(f"Database error: {e}")
                raise StorageError(f"Error counting users: {e}", e)

        return int(count)


def get_users_service(request: Request) -> UsersService:
    """Get the process-wide users service created at startup"""
    return request.app.state.users_service
