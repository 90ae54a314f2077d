"""Pytest configuration and shared in-memory collaborators.

The package uses a `src/` layout. This conftest ensures tests can import `gh_users` when running
`pytest` locally without installing the package.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

# Ensure `import gh_users` works when running pytest without installing the package.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from gh_users.db.users import UserExistsError, UserMissingError  # noqa: E402
from gh_users.github.client import (  # noqa: E402
    GitHubProfile,
    ProfileNotFoundError,
    ProfileSourceError,
)
from gh_users.intent.schema import UserFilter  # noqa: E402
from gh_users.users.models import UserRecord  # noqa: E402


class FakeProfileSource:
    """GitHub stand-in: profiles and language sets keyed by username / repos URL."""

    def __init__(self) -> None:
        self.profiles: dict[str, GitHubProfile] = {}
        self.languages: dict[str, set[str]] = {}
        self.failing_repos_urls: set[str] = set()
        self.broken_profiles: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def add(self, username: str, languages: set[str], **fields: object) -> None:
        repos_url = f"https://api.github.test/users/{username}/repos"
        self.profiles[username] = GitHubProfile(repos_url=repos_url, **fields)
        self.languages[repos_url] = set(languages)

    async def fetch_profile(self, username: str) -> GitHubProfile:
        self.calls.append(("fetch_profile", username))
        if username in self.broken_profiles:
            raise ProfileSourceError(f"Failed to fetch GitHub user: {username}")
        try:
            return self.profiles[username]
        except KeyError:
            raise ProfileNotFoundError(f"GitHub user {username} not found") from None

    async def fetch_languages(self, repos_url: str) -> set[str]:
        self.calls.append(("fetch_languages", repos_url))
        if repos_url in self.failing_repos_urls:
            raise ProfileSourceError(f"Failed to fetch repositories from: {repos_url}")
        return set(self.languages.get(repos_url, set()))


class FakeUserStore:
    """In-memory store honoring the transactional contract of `UserStore`."""

    def __init__(self) -> None:
        self.users: dict[str, UserRecord] = {}
        self.fail_on_replace = False
        self.calls: list[str] = []

    async def insert_user(self, record: UserRecord) -> int:
        self.calls.append("insert_user")
        if record.username in self.users:
            raise UserExistsError(f"User {record.username} already exists")
        self.users[record.username] = record.model_copy(deep=True)
        return len(self.users)

    async def replace_user(self, record: UserRecord) -> int:
        self.calls.append("replace_user")
        if record.username not in self.users:
            raise UserMissingError(f"User {record.username} not found")
        if self.fail_on_replace:
            raise RuntimeError("connection lost during language replace")
        self.users[record.username] = record.model_copy(deep=True)
        return 1

    async def delete_user(self, username: str) -> None:
        self.calls.append("delete_user")
        if username not in self.users:
            raise UserMissingError(f"User {username} not found")
        del self.users[username]

    async def fetch_user(self, username: str) -> UserRecord | None:
        self.calls.append("fetch_user")
        return self.users.get(username)

    async def fetch_users(self, user_filter: UserFilter | None = None) -> list[UserRecord]:
        self.calls.append("fetch_users")
        return sorted(self.users.values(), key=lambda r: r.username)

    async def bulk_insert_users(self, records: Sequence[UserRecord]) -> int:
        self.calls.append("bulk_insert_users")
        staged = dict(self.users)
        for record in records:
            if record.username in staged:
                raise UserExistsError(f"User {record.username} already exists")
            staged[record.username] = record
        self.users = staged
        return len(records)


@pytest.fixture
def profiles() -> FakeProfileSource:
    return FakeProfileSource()


@pytest.fixture
def store() -> FakeUserStore:
    return FakeUserStore()
