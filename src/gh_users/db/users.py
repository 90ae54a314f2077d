"""Postgres persistence store for tracked users.

Every mutating method runs inside a single transaction so a user row and its language rows are
always written, replaced, or removed together. Queries are parameterized; no user value is ever
interpolated into SQL.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, LiteralString, cast

from psycopg import AsyncConnection
from psycopg.errors import UniqueViolation
from psycopg_pool import AsyncConnectionPool

from gh_users.db.pool import get_conn
from gh_users.intent.schema import UserFilter
from gh_users.sql.builder import BuiltQuery, build_user_query, build_users_query
from gh_users.users.models import UserRecord


class UserStoreError(RuntimeError):
    """Base class for store-level failures the command layer recognizes."""


class UserExistsError(UserStoreError):
    """Raised when inserting a username that is already tracked."""


class UserMissingError(UserStoreError):
    """Raised when updating or deleting a username that is not tracked."""


_INSERT_USER_SQL = """
    INSERT INTO github_users (username, name, bio, location, company, followers, following)
    VALUES (%s, %s, %s, %s, %s, %s, %s)
    RETURNING id
"""

_UPDATE_USER_SQL = """
    UPDATE github_users
       SET name = %s, bio = %s, location = %s, company = %s, followers = %s, following = %s
     WHERE username = %s
    RETURNING id
"""

_INSERT_LANGUAGE_SQL = "INSERT INTO user_languages (user_id, language) VALUES (%s, %s)"


async def _fetch_one(conn: AsyncConnection, sql: str, params: tuple[Any, ...]) -> Any:
    async with conn.cursor() as cur:
        await cur.execute(cast(LiteralString, sql), params)
        return await cur.fetchone()


async def _execute(conn: AsyncConnection, sql: str, params: tuple[Any, ...]) -> None:
    async with conn.cursor() as cur:
        await cur.execute(cast(LiteralString, sql), params)


async def _insert_user_row(conn: AsyncConnection, record: UserRecord) -> int:
    row = await _fetch_one(
        conn,
        _INSERT_USER_SQL,
        (
            record.username,
            record.name,
            record.bio,
            record.location,
            record.company,
            record.followers,
            record.following,
        ),
    )
    return int(row["id"])


async def _insert_languages(conn: AsyncConnection, user_id: int, languages: Iterable[str]) -> None:
    rows = [(user_id, language) for language in sorted(languages)]
    if not rows:
        return
    async with conn.cursor() as cur:
        await cur.executemany(_INSERT_LANGUAGE_SQL, rows)


async def _fetch_records(conn: AsyncConnection, query: BuiltQuery) -> list[UserRecord]:
    async with conn.cursor() as cur:
        await cur.execute(cast(LiteralString, query.sql), query.params)
        rows = await cur.fetchall()
    return [UserRecord.from_row(row) for row in rows]


class UserStore:
    """Transactional access to `github_users` and `user_languages`."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def insert_user(self, record: UserRecord) -> int:
        """Insert a new user and its languages; returns the new row id."""

        async with get_conn(self._pool) as conn:
            try:
                async with conn.transaction():
                    user_id = await _insert_user_row(conn, record)
                    await _insert_languages(conn, user_id, record.languages)
            except UniqueViolation as exc:
                raise UserExistsError(f"User {record.username} already exists") from exc
        return user_id

    async def replace_user(self, record: UserRecord) -> int:
        """Replace all scalar fields and the entire language set of an existing user."""

        async with get_conn(self._pool) as conn:
            async with conn.transaction():
                row = await _fetch_one(
                    conn,
                    _UPDATE_USER_SQL,
                    (
                        record.name,
                        record.bio,
                        record.location,
                        record.company,
                        record.followers,
                        record.following,
                        record.username,
                    ),
                )
                if row is None:
                    raise UserMissingError(f"User {record.username} not found")

                user_id = int(row["id"])
                await _execute(conn, "DELETE FROM user_languages WHERE user_id = %s", (user_id,))
                await _insert_languages(conn, user_id, record.languages)
        return user_id

    async def delete_user(self, username: str) -> None:
        """Remove a user and its language rows as one unit."""

        async with get_conn(self._pool) as conn:
            async with conn.transaction():
                row = await _fetch_one(
                    conn, "SELECT id FROM github_users WHERE username = %s", (username,)
                )
                if row is None:
                    raise UserMissingError(f"User {username} not found")

                user_id = int(row["id"])
                await _execute(conn, "DELETE FROM user_languages WHERE user_id = %s", (user_id,))
                await _execute(conn, "DELETE FROM github_users WHERE id = %s", (user_id,))

    async def fetch_user(self, username: str) -> UserRecord | None:
        async with get_conn(self._pool) as conn:
            records = await _fetch_records(conn, build_user_query(username))
        return records[0] if records else None

    async def fetch_users(self, user_filter: UserFilter | None = None) -> list[UserRecord]:
        async with get_conn(self._pool) as conn:
            return await _fetch_records(conn, build_users_query(user_filter))

    async def bulk_insert_users(self, records: Sequence[UserRecord]) -> int:
        """Insert every record and its languages in one all-or-nothing transaction."""

        async with get_conn(self._pool) as conn:
            async with conn.transaction():
                for record in records:
                    user_id = await _insert_user_row(conn, record)
                    await _insert_languages(conn, user_id, record.languages)
        return len(records)
