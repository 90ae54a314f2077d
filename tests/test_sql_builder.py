"""Tests for the user retrieval SQL builder (allowlists + parameter binding)."""

from __future__ import annotations

import pytest

from gh_users.intent.schema import SortKey, UserFilter
from gh_users.sql.builder import build_user_query, build_users_query, resolve_sort


def _placeholder_count(sql: str) -> int:
    return sql.count("%s")


def test_build_users_no_filters() -> None:
    built = build_users_query(UserFilter())

    assert "FROM github_users u LEFT JOIN user_languages l ON l.user_id = u.id" in built.sql
    assert "WHERE" not in built.sql
    assert "HAVING" not in built.sql
    assert built.sql.endswith("ORDER BY u.username ASC")
    assert built.params == ()
    assert _placeholder_count(built.sql) == 0


def test_build_users_defaults_when_filter_omitted() -> None:
    assert build_users_query() == build_users_query(UserFilter())


def test_languages_aggregate_tolerates_users_without_languages() -> None:
    sql = build_users_query().sql

    assert "COALESCE(STRING_AGG(l.language, ', ' ORDER BY l.language), '') AS languages" in sql
    assert "LEFT JOIN" in sql
    assert " JOIN user_languages" in sql
    assert "INNER JOIN" not in sql


def test_equality_filters_are_anded_and_parameterized() -> None:
    built = build_users_query(UserFilter(location="Lisbon", company="Acme"))

    assert "WHERE u.location = %s AND u.company = %s" in built.sql
    assert "Lisbon" not in built.sql
    assert "Acme" not in built.sql
    assert built.params == ("Lisbon", "Acme")
    assert _placeholder_count(built.sql) == len(built.params)


def test_absent_filter_emits_no_placeholder() -> None:
    built = build_users_query(UserFilter(company="Acme"))

    assert "u.location" not in built.sql.split("GROUP BY")[0].split("WHERE")[1]
    assert built.params == ("Acme",)
    assert _placeholder_count(built.sql) == 1


def test_language_filter_applies_after_grouping() -> None:
    built = build_users_query(UserFilter(language="Go"))

    where_part, _, after_group = built.sql.partition("GROUP BY")
    assert "WHERE" not in where_part
    assert "HAVING COALESCE(STRING_AGG(l.language, ', ' ORDER BY l.language), '') LIKE %s" in (
        after_group
    )
    assert built.params == ("%Go%",)


def test_language_filter_escapes_like_wildcards() -> None:
    built = build_users_query(UserFilter(language="50%_C\\"))

    assert built.params == ("%50\\%\\_C\\\\%",)


@pytest.mark.parametrize(
    ("sort", "expected"),
    [
        ("username", "ORDER BY u.username ASC"),
        ("location", "ORDER BY u.location ASC, u.username ASC"),
        ("company", "ORDER BY u.company ASC, u.username ASC"),
        ("followers", "ORDER BY u.followers DESC NULLS LAST, u.username ASC"),
        ("following", "ORDER BY u.following DESC NULLS LAST, u.username ASC"),
    ],
)
def test_sort_directions(sort: str, expected: str) -> None:
    assert build_users_query(UserFilter(sort=sort)).sql.endswith(expected)


@pytest.mark.parametrize("sort", [None, "stars", "name; DROP TABLE github_users", "bio"])
def test_unknown_or_missing_sort_falls_back_to_username(sort: str | None) -> None:
    built = build_users_query(UserFilter(sort=sort))

    assert built.sql.endswith("ORDER BY u.username ASC")
    assert "DROP" not in built.sql


def test_resolve_sort_is_case_insensitive() -> None:
    assert resolve_sort(" Followers ") == SortKey.followers
    assert resolve_sort("unknown") == SortKey.username


def test_combined_filters_parameter_order() -> None:
    built = build_users_query(UserFilter(location="SF", language="Go", sort="followers"))

    assert "WHERE u.location = %s" in built.sql
    assert "u.company" not in built.sql.split("GROUP BY")[0].split("WHERE")[1]
    assert built.params == ("SF", "%Go%")
    assert built.sql.endswith("ORDER BY u.followers DESC NULLS LAST, u.username ASC")
    assert _placeholder_count(built.sql) == len(built.params)


def test_build_user_query_shape() -> None:
    built = build_user_query("octocat")

    assert "WHERE u.username = %s" in built.sql
    assert "octocat" not in built.sql
    assert "LEFT JOIN user_languages" in built.sql
    assert built.params == ("octocat",)
    assert _placeholder_count(built.sql) == 1
