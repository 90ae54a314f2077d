"""Collaborator contracts consumed by the user command layer.

`GitHubClient` and `UserStore` satisfy these structurally; tests substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from gh_users.github.client import GitHubProfile
from gh_users.intent.schema import UserFilter
from gh_users.users.models import UserRecord


class ProfileSource(Protocol):
    """Contract for the external profile source.

    Implementations raise `ProfileNotFoundError` for unknown users and `ProfileSourceError` for any
    other failure.
    """

    async def fetch_profile(self, username: str) -> GitHubProfile: ...

    async def fetch_languages(self, repos_url: str) -> set[str]: ...


class UserStoreProtocol(Protocol):
    """Contract for the transactional persistence store.

    Implementations raise `UserExistsError` on duplicate inserts and `UserMissingError` when
    replacing or deleting an unknown username.
    """

    async def insert_user(self, record: UserRecord) -> int: ...

    async def replace_user(self, record: UserRecord) -> int: ...

    async def delete_user(self, username: str) -> None: ...

    async def fetch_user(self, username: str) -> UserRecord | None: ...

    async def fetch_users(self, user_filter: UserFilter | None = None) -> list[UserRecord]: ...

    async def bulk_insert_users(self, records: Sequence[UserRecord]) -> int: ...
