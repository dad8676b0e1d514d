"""Database repository for user and business accounts."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import psycopg
from psycopg import sql
from psycopg.errors import UniqueViolation
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool

from .domain.account import BusinessAccount, UserAccount
from .domain.contracts import RegisterBusinessInput, RegisterUserInput
from .domain.errors import DUPLICATE_ACCOUNT, ConflictError, DependencyError

logger = logging.getLogger(__name__)

# Column order matches the dataclass field order of the mapped aggregate.
USER_COLUMNS = ("id", "email", "name", "password_hash", "age", "username", "surname")
BUSINESS_COLUMNS = (
    "id",
    "email",
    "name",
    "busi_username",
    "category",
    "password_hash",
    "rating",
    "description",
    "address",
)
UPDATABLE_USER_COLUMNS = frozenset({"email", "name", "surname", "username", "age", "password_hash"})

_USER_SELECT = f"SELECT {', '.join(USER_COLUMNS)} FROM users"
_BUSINESS_SELECT = f"SELECT {', '.join(BUSINESS_COLUMNS)} FROM businesses"


class AccountRepository:
    """Postgres-backed account persistence.

    Every statement uses bound parameters; column names never come from
    request data except through the ``UPDATABLE_USER_COLUMNS`` allow-list.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @asynccontextmanager
    async def _translate_errors(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except UniqueViolation as exc:
            logger.info("unique constraint rejected %s: %s", operation, exc)
            raise ConflictError(DUPLICATE_ACCOUNT) from exc
        except psycopg.Error as exc:
            logger.exception("account store %s failed", operation)
            raise DependencyError(str(exc)) from exc

    async def _fetch_one(
        self, operation: str, query: Any, params: Sequence[Any], *, write: bool = False
    ) -> tuple | None:
        async with self._translate_errors(operation):
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    await cur.execute(query, params)
                    row = await cur.fetchone()
                if write:
                    await conn.commit()
        return row

    async def get_user_by_email(self, email: str) -> UserAccount | None:
        row = await self._fetch_one("user lookup", f"{_USER_SELECT} WHERE email = %s", (email,))
        return self._map_user(row) if row else None

    async def get_user_by_username(self, username: str) -> UserAccount | None:
        row = await self._fetch_one(
            "user lookup", f"{_USER_SELECT} WHERE username = %s", (username,)
        )
        return self._map_user(row) if row else None

    async def get_user(self, user_id: str) -> UserAccount | None:
        row = await self._fetch_one("user lookup", f"{_USER_SELECT} WHERE id = %s", (user_id,))
        return self._map_user(row) if row else None

    async def create_user(self, payload: RegisterUserInput, password_hash: str) -> UserAccount:
        """Insert a user row and return the stored aggregate."""
        row = await self._fetch_one(
            "user insert",
            f"""
            INSERT INTO users ({', '.join(USER_COLUMNS)})
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {', '.join(USER_COLUMNS)}
            """,
            (
                str(uuid.uuid4()),
                payload.email,
                payload.name,
                password_hash,
                payload.age,
                payload.username,
                payload.surname,
            ),
            write=True,
        )
        return self._map_user(row)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> UserAccount | None:
        """Replace the given columns of a user row.

        Returns ``None`` when no row has ``user_id``. An empty change set reads
        the current row instead of issuing an UPDATE.
        """
        unknown = set(changes) - UPDATABLE_USER_COLUMNS
        if unknown:
            raise ValueError(f"cannot update user columns: {sorted(unknown)}")
        if not changes:
            return await self.get_user(user_id)

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in changes
        )
        query = sql.SQL("UPDATE users SET {} WHERE id = %s RETURNING {}").format(
            assignments,
            sql.SQL(", ").join(sql.Identifier(column) for column in USER_COLUMNS),
        )
        row = await self._fetch_one(
            "user update", query, (*changes.values(), user_id), write=True
        )
        return self._map_user(row) if row else None

    async def get_business_by_email(self, email: str) -> BusinessAccount | None:
        row = await self._fetch_one(
            "business lookup", f"{_BUSINESS_SELECT} WHERE email = %s", (email,)
        )
        return self._map_business(row) if row else None

    async def get_business_by_username(self, busi_username: str) -> BusinessAccount | None:
        row = await self._fetch_one(
            "business lookup", f"{_BUSINESS_SELECT} WHERE busi_username = %s", (busi_username,)
        )
        return self._map_business(row) if row else None

    async def create_business(
        self, payload: RegisterBusinessInput, password_hash: str
    ) -> BusinessAccount:
        """Insert a business row and return the stored aggregate."""
        row = await self._fetch_one(
            "business insert",
            f"""
            INSERT INTO businesses ({', '.join(BUSINESS_COLUMNS)})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {', '.join(BUSINESS_COLUMNS)}
            """,
            (
                str(uuid.uuid4()),
                payload.email,
                payload.name,
                payload.busi_username,
                payload.category,
                password_hash,
                payload.rating,
                payload.description,
                payload.address,
            ),
            write=True,
        )
        return self._map_business(row)

    def _map_user(self, row: tuple) -> UserAccount:
        """Convert a raw ``users`` tuple into the domain ``UserAccount`` dataclass."""
        return UserAccount(str(row[0]), *row[1:])

    def _map_business(self, row: tuple) -> BusinessAccount:
        """Convert a raw ``businesses`` tuple into the domain ``BusinessAccount`` dataclass."""
        return BusinessAccount(str(row[0]), *row[1:])
