"""User record model shared by the command layer, the store, and the boundaries."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

LANGUAGE_DELIMITER = ", "


def split_languages(value: str | None) -> set[str]:
    """Split an aggregated language string (`"Go, Python"`) back into a set."""

    if not value:
        return set()
    return {part.strip() for part in value.split(LANGUAGE_DELIMITER.strip()) if part.strip()}


class UserRecord(BaseModel):
    """A tracked GitHub user and the set of languages across their repositories."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    username: str = Field(min_length=1)
    name: str | None = None
    bio: str | None = None
    location: str | None = None
    company: str | None = None
    followers: int | None = Field(default=None, ge=0)
    following: int | None = Field(default=None, ge=0)
    languages: set[str] = Field(default_factory=set)

    @field_validator("languages", mode="before")
    @classmethod
    def coerce_languages(cls, value: Any) -> Any:
        """Accept the aggregated string form as well as any iterable of names."""

        if value is None:
            return set()
        if isinstance(value, str):
            return split_languages(value)
        return value

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> UserRecord:
        """Build a record from a joined/aggregated query row."""

        return cls.model_validate(dict(row))

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict; languages are emitted sorted for stable output."""

        payload = self.model_dump(mode="json")
        payload["languages"] = sorted(self.languages)
        return payload


def record_from_profile(username: str, profile: Any, languages: Iterable[str]) -> UserRecord:
    """Combine a fetched profile and its language set into a `UserRecord`."""

    return UserRecord(
        username=username,
        name=profile.name,
        bio=profile.bio,
        location=profile.location,
        company=profile.company,
        followers=profile.followers,
        following=profile.following,
        languages=set(languages),
    )
