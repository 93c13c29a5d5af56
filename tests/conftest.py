"""
pytest configuration and fixtures
Runs the app against an in-memory stand-in for the asyncpg pool, so no
PostgreSQL server is needed.
"""

import re
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import asyncpg
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from app import create_app
from services import users_service as sql
from services.users_service import UsersService

UPDATE_ASSIGNMENT = re.compile(r"(\w+) = \$(\d+)")


def like_to_regex(pattern: str) -> re.Pattern:
    """Translate an ILIKE pattern (backslash escapes) into a regex"""
    parts = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            parts.append(re.escape(next(chars, "")))
        elif char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


class FakeConnection:
    """Understands exactly the statements the users service issues"""

    def __init__(self, store):
        self.store = store

    async def execute(self, query, *params):
        if "CREATE TABLE" in query:
            return "CREATE TABLE"
        raise AssertionError(f"Unexpected statement: {query}")

    async def fetchval(self, query, *params):
        self.store.check_failure()
        if query == "SELECT 1":
            return 1
        if query == sql.COUNT_USERS_SQL:
            return len(self.store.rows)
        raise AssertionError(f"Unexpected query: {query}")

    async def fetch(self, query, *params):
        self.store.check_failure()
        if query == sql.SELECT_ALL_USERS_SQL:
            rows = self.store.ordered()
        elif query == sql.SEARCH_USERS_SQL:
            matcher = like_to_regex(params[0])
            rows = [
                row for row in self.store.ordered()
                if matcher.fullmatch(row["name"]) or matcher.fullmatch(row["email"])
            ]
        else:
            raise AssertionError(f"Unexpected query: {query}")
        return [dict(row) for row in rows]

    async def fetchrow(self, query, *params):
        self.store.check_failure()
        if query == sql.INSERT_USER_SQL:
            return self.store.insert(*params)
        if query == sql.SELECT_USER_SQL:
            row = self.store.rows.get(params[0])
            return dict(row) if row else None
        if query == sql.DELETE_USER_SQL:
            row = self.store.rows.pop(params[0], None)
            return dict(row) if row else None
        if query.strip().startswith("UPDATE users"):
            assignments = {name: params[int(index) - 1] for name, index in UPDATE_ASSIGNMENT.findall(query)}
            user_id = assignments.pop("id")
            return self.store.update(user_id, assignments)
        raise AssertionError(f"Unexpected query: {query}")


class InMemoryUsersTable:

    def __init__(self):
        self.rows = {}
        self.next_id = 1
        self.failure = None

    def check_failure(self):
        if self.failure is not None:
            raise self.failure

    def ordered(self):
        return [self.rows[user_id] for user_id in sorted(self.rows)]

    def _check_unique_email(self, email, exclude_id=None):
        for row in self.rows.values():
            if row["email"] == email and row["id"] != exclude_id:
                raise asyncpg.UniqueViolationError(
                    'duplicate key value violates unique constraint "users_email_key"'
                )

    def insert(self, name, email, age):
        self._check_unique_email(email)
        now = datetime.now()
        row = {
            "id": self.next_id,
            "name": name,
            "email": email,
            "age": age,
            "created_at": now,
            "updated_at": now,
        }
        self.rows[row["id"]] = row
        self.next_id += 1
        return dict(row)

    def update(self, user_id, changes):
        row = self.rows.get(user_id)
        if row is None:
            return None
        if "email" in changes:
            self._check_unique_email(changes["email"], exclude_id=user_id)
        row.update(changes)
        row["updated_at"] = max(datetime.now(), row["updated_at"])
        return dict(row)


class FakeDatabase:
    """Drop-in for database.connection.Database"""

    def __init__(self):
        self.table = InMemoryUsersTable()
        self.connected = False
        self.initialized = False

    async def connect(self):
        self.connected = True

    async def create_users_table(self):
        self.initialized = True

    async def initialize(self):
        await self.connect()
        await self.create_users_table()

    async def close(self):
        self.connected = False

    @asynccontextmanager
    async def _connection(self):
        yield FakeConnection(self.table)

    def acquire(self):
        return self._connection()


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def users_service(database):
    return UsersService(database)


@pytest.fixture
def app(database):
    return create_app(database=database, development=False)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
