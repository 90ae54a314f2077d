"""Deterministic SQL builder for user retrieval.

The builder converts a `UserFilter` (or a single username) into a parameterized query over the
`github_users` / `user_languages` relation. Identifiers (columns, sort directions) are strictly
allowlisted; only values become bound parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gh_users.intent.schema import DEFAULT_SORT, SortKey, UserFilter
from gh_users.sql.columns import EQUALITY_FILTER_COLUMNS, SORT_ORDER, USER_COLUMNS
from gh_users.users.models import LANGUAGE_DELIMITER

_LANGUAGES_AGG = (
    f"COALESCE(STRING_AGG(l.language, '{LANGUAGE_DELIMITER}' ORDER BY l.language), '')"
)


@dataclass(frozen=True)
class BuiltQuery:
    """A parameterized SQL query ready for execution."""

    sql: str
    params: tuple[Any, ...]


def _where_and(clauses: list[str]) -> str:
    if not clauses:
        return ""
    return "WHERE " + " AND ".join(clauses)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def resolve_sort(sort: str | None) -> SortKey:
    """Return the allowlisted sort key, falling back to `username` for unknown keys."""

    if sort is None:
        return DEFAULT_SORT
    try:
        return SortKey(sort.strip().lower())
    except ValueError:
        return DEFAULT_SORT


def _order_by(sort: str | None) -> str:
    key = resolve_sort(sort)
    column, direction = SORT_ORDER[key]
    if key == SortKey.username:
        return f"ORDER BY {column} {direction}"
    nulls = " NULLS LAST" if direction == "DESC" else ""
    return f"ORDER BY {column} {direction}{nulls}, u.username ASC"


def _select_users(where_clauses: list[str], having_clause: str, order_by: str) -> str:
    columns = ", ".join(f"u.{c}" for c in USER_COLUMNS)
    parts = [
        f"SELECT {columns}, {_LANGUAGES_AGG} AS languages",
        "FROM github_users u LEFT JOIN user_languages l ON l.user_id = u.id",
        _where_and(where_clauses),
        f"GROUP BY u.id, {columns}",
        having_clause,
        order_by,
    ]
    return " ".join(p for p in parts if p)


def build_users_query(user_filter: UserFilter | None = None) -> BuiltQuery:
    """Build the filtered, sorted listing query.

    Contract:
        - `location` / `company` are AND-ed equality filters; absent filters emit no clause and no
          placeholder.
        - Languages are aggregated per user into one `", "`-delimited string; users without any
          language rows are kept and get `''`.
        - `language` is a substring match against the aggregated string, applied after grouping.
        - Sort falls back to `username ASC` for absent or unknown keys.
    """

    user_filter = user_filter or UserFilter()
    clauses: list[str] = []
    params: list[Any] = []

    for field, column in EQUALITY_FILTER_COLUMNS.items():
        value = getattr(user_filter, field)
        if value is None:
            continue
        clauses.append(f"{column} = %s")
        params.append(value)

    having = ""
    if user_filter.language is not None:
        having = f"HAVING {_LANGUAGES_AGG} LIKE %s"
        params.append(f"%{_escape_like(user_filter.language)}%")

    sql = _select_users(clauses, having, _order_by(user_filter.sort))
    return BuiltQuery(sql=sql, params=tuple(params))


def build_user_query(username: str) -> BuiltQuery:
    """Build the single-user lookup query (same shape as the listing)."""

    sql = _select_users(["u.username = %s"], "", _order_by(None))
    return BuiltQuery(sql=sql, params=(username,))
