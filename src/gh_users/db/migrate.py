"""Schema migrations for the user tracker database.

`gh-users-migrate` applies every `.sql` file under `gh_users/db/migrations/` that is not yet
recorded in `schema_migrations`, oldest name first, one transaction per file. `--list` only reports
what is pending.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import LiteralString, cast

import psycopg
from dotenv import load_dotenv
from psycopg import sql

from gh_users.config.logging import configure_logging
from gh_users.db.connection import connect, require_database_url

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"
TRACKING_TABLE = "schema_migrations"

# Dropped by `--recreate`, children first.
MANAGED_TABLES = ("user_languages", "github_users", TRACKING_TABLE)


@dataclass(frozen=True)
class Migration:
    name: str
    path: Path

    def sql_text(self) -> str:
        return self.path.read_text(encoding="utf-8")


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Return the migrations in `directory`, ordered by file name.

    Raises:
        RuntimeError: If the directory is missing or holds no `.sql` files.
    """

    if not directory.is_dir():
        raise RuntimeError(f"Migrations directory does not exist: {directory}")

    migrations = [
        Migration(name=path.name, path=path)
        for path in sorted(directory.glob("*.sql"))
        if path.is_file()
    ]
    if not migrations:
        raise RuntimeError(f"No .sql migration files found in {directory}")
    return migrations


def pending_migrations(migrations: Iterable[Migration], applied: set[str]) -> list[Migration]:
    return [m for m in migrations if m.name not in applied]


def _applied_names(conn: psycopg.Connection) -> set[str]:
    conn.execute(
        sql.SQL(
            "CREATE TABLE IF NOT EXISTS {} "
            "(filename TEXT PRIMARY KEY, applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
        ).format(sql.Identifier(TRACKING_TABLE)),
        prepare=False,
    )
    rows = conn.execute(
        sql.SQL("SELECT filename FROM {}").format(sql.Identifier(TRACKING_TABLE)),
        prepare=False,
    ).fetchall()
    return {row[0] for row in rows}


def _drop_managed_tables(conn: psycopg.Connection) -> None:
    with conn.transaction():
        for table in MANAGED_TABLES:
            conn.execute(
                sql.SQL("DROP TABLE IF EXISTS {} CASCADE").format(sql.Identifier(table)),
                prepare=False,
            )
    logger.warning("dropped tables %s", ", ".join(MANAGED_TABLES))


def _apply(conn: psycopg.Connection, migration: Migration) -> None:
    with conn.transaction():
        conn.execute(cast(LiteralString, migration.sql_text()), prepare=False)
        conn.execute(
            sql.SQL("INSERT INTO {} (filename) VALUES (%s)").format(
                sql.Identifier(TRACKING_TABLE)
            ),
            (migration.name,),
            prepare=False,
        )


def migrate(
        database_url: str | None = None,
        *,
        recreate: bool = False,
        dry_run: bool = False,
) -> list[str]:
    """Bring the database schema up to date.

    Returns the names of the migrations applied (or, with `dry_run`, the ones that would be).
    """

    if database_url is None:
        load_dotenv(".env")
        database_url = require_database_url()

    migrations = discover_migrations()

    with connect(database_url) as conn:
        if recreate and not dry_run:
            _drop_managed_tables(conn)

        todo = pending_migrations(migrations, _applied_names(conn))
        if dry_run:
            return [m.name for m in todo]

        for migration in todo:
            _apply(conn, migration)
            logger.info("applied migration %s", migration.name)

    if not todo:
        logger.info("schema is up to date")
    return [m.name for m in todo]


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Apply the user tracker schema migrations.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--recreate",
        action="store_true",
        help="Drop the tracker tables first, then apply every migration (destructive).",
    )
    group.add_argument("--list", action="store_true", help="Print pending migrations and exit.")
    args = parser.parse_args(argv)

    configure_logging()
    names = migrate(recreate=args.recreate, dry_run=args.list)
    if args.list:
        for name in names:
            print(name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
