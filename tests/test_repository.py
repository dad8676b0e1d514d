"""Tests for the Postgres repository using stand-in pool objects."""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

import psycopg
import pytest
from psycopg.errors import UniqueViolation

from auth_service.domain.contracts import RegisterUserInput
from auth_service.domain.errors import ConflictError, DependencyError
from auth_service.repository import AccountRepository


class RecordingCursor:
    def __init__(self, row) -> None:
        self.row = row
        self.executed: list[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, query, params):
        self.executed.append((query, params))

    async def fetchone(self):
        return self.row


class RecordingConnection:
    def __init__(self, cursor: RecordingCursor) -> None:
        self._cursor = cursor
        self.commits = 0

    def cursor(self, row_factory=None):
        return self._cursor

    async def commit(self):
        self.commits += 1


class RecordingPool:
    def __init__(self, row=None) -> None:
        self.cursor = RecordingCursor(row)
        self.conn = RecordingConnection(self.cursor)

    @asynccontextmanager
    async def connection(self):
        yield self.conn


class FailingPool:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    @asynccontextmanager
    async def connection(self):
        raise self._exc
        yield  # pragma: no cover


def test_create_user_binds_values_and_maps_row():
    user_id = uuid.uuid4()
    pool = RecordingPool(row=(user_id, "a@b.com", "Ana", "$2b$hash", 30, "ana1", None))
    repository = AccountRepository(pool)
    payload = RegisterUserInput(
        email="a@b.com", name="Ana", age=30, password="abcd1234", username="ana1"
    )

    user = asyncio.run(repository.create_user(payload, "$2b$hash"))

    assert user.id == str(user_id)
    assert user.email == "a@b.com"
    assert user.password_hash == "$2b$hash"
    assert pool.conn.commits == 1
    query, params = pool.cursor.executed[0]
    assert "a@b.com" not in query
    assert params[1:] == ("a@b.com", "Ana", "$2b$hash", 30, "ana1", None)


def test_lookup_returns_none_without_row():
    repository = AccountRepository(RecordingPool(row=None))

    assert asyncio.run(repository.get_business_by_email("x@y.com")) is None


def test_update_user_rejects_unknown_columns():
    repository = AccountRepository(RecordingPool())

    with pytest.raises(ValueError):
        asyncio.run(repository.update_user("user-1", {"is_admin": True}))


def test_update_user_binds_values_in_order():
    pool = RecordingPool(row=("user-1", "a@b.com", "Bea", "hash", 31, None, None))
    repository = AccountRepository(pool)

    user = asyncio.run(repository.update_user("user-1", {"name": "Bea", "age": 31}))

    assert user is not None and user.name == "Bea"
    _, params = pool.cursor.executed[0]
    assert params == ("Bea", 31, "user-1")
    assert pool.conn.commits == 1


def test_empty_update_reads_current_row():
    pool = RecordingPool(row=("user-1", "a@b.com", "Ana", "hash", 30, None, None))
    repository = AccountRepository(pool)

    user = asyncio.run(repository.update_user("user-1", {}))

    assert user is not None and user.name == "Ana"
    query, params = pool.cursor.executed[0]
    assert query.startswith("SELECT")
    assert params == ("user-1",)
    assert pool.conn.commits == 0


def test_database_errors_become_dependency_errors():
    repository = AccountRepository(FailingPool(psycopg.OperationalError("connection refused")))

    with pytest.raises(DependencyError, match="connection refused"):
        asyncio.run(repository.get_user_by_email("a@b.com"))


def test_database_errors_are_logged_with_traceback(caplog):
    repository = AccountRepository(FailingPool(psycopg.OperationalError("connection refused")))

    with caplog.at_level(logging.ERROR, logger="auth_service.repository"):
        with pytest.raises(DependencyError):
            asyncio.run(repository.get_user_by_email("a@b.com"))

    [record] = caplog.records
    assert record.getMessage() == "account store user lookup failed"
    assert record.exc_info is not None


def test_unique_violation_becomes_conflict():
    repository = AccountRepository(FailingPool(UniqueViolation("duplicate key value")))
    payload = RegisterUserInput(email="a@b.com", name="Ana", age=30, password="abcd1234")

    with pytest.raises(ConflictError) as excinfo:
        asyncio.run(repository.create_user(payload, "hash"))
    assert excinfo.value.status_code == 409
