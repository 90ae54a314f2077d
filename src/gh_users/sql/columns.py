"""Allowlisted SQL identifiers.

All column names and sort directions referenced in generated SQL must come from these mappings; no
user-provided identifier is ever interpolated into SQL.
"""

from __future__ import annotations

from gh_users.intent.schema import SortKey

USER_COLUMNS: tuple[str, ...] = (
    "username",
    "name",
    "bio",
    "location",
    "company",
    "followers",
    "following",
)

# Textual keys sort ascending, popularity counters descending.
SORT_ORDER: dict[SortKey, tuple[str, str]] = {
    SortKey.username: ("u.username", "ASC"),
    SortKey.location: ("u.location", "ASC"),
    SortKey.company: ("u.company", "ASC"),
    SortKey.followers: ("u.followers", "DESC"),
    SortKey.following: ("u.following", "DESC"),
}

EQUALITY_FILTER_COLUMNS: dict[str, str] = {
    "location": "u.location",
    "company": "u.company",
}
