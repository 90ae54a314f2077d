"""Intent schema (Pydantic models).

This schema is the contract between the language-model classifier and the intent resolver. The
classifier output must validate against these models; blank strings (the model's way of saying
"not mentioned") are normalized to `None`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class Action(StrEnum):
    """The fixed action grammar; values are the names the classifier emits."""

    create = "add-user"
    update = "update-user"
    delete = "delete-user"
    get_one = "get-user"
    get_many = "get-users"
    bulk_load = "populate"


class SortKey(StrEnum):
    """Sort keys accepted for user listings."""

    username = "username"
    location = "location"
    company = "company"
    followers = "followers"
    following = "following"


DEFAULT_SORT = SortKey.username


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class UserFilter(BaseModel):
    """Optional filters and sort key for listing users.

    `sort` is free text on purpose: keys outside `SortKey` fall back to the default order in the SQL
    builder rather than failing validation.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    location: str | None = None
    company: str | None = None
    language: str | None = None
    sort: str | None = None

    @field_validator("location", "company", "language", "sort", mode="before")
    @classmethod
    def normalize_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class Intent(BaseModel):
    """A structured request produced by the classifier and consumed once by the resolver."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    action: Action
    username: str | None = None
    location: str | None = None
    company: str | None = None
    language: str | None = None
    sort: str | None = None

    @field_validator("username", "location", "company", "language", "sort", mode="before")
    @classmethod
    def normalize_blank(cls, value: Any) -> Any:
        """Treat empty strings as absent fields."""

        return _blank_to_none(value)

    def to_filter(self) -> UserFilter:
        """Project the optional listing fields into a `UserFilter`."""

        return UserFilter(
            location=self.location,
            company=self.company,
            language=self.language,
            sort=self.sort,
        )
