"""GitHub REST client (profile source).

Two calls are exposed: the user profile, and the set of languages across the user's repositories.
Per-repository language lookups run concurrently; a repository whose languages cannot be fetched is
logged and skipped. Only a failure to list the repositories is fatal.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_TIMEOUT_S = 5.0


class ProfileSourceError(RuntimeError):
    """Raised when GitHub cannot provide a usable profile or repository list."""


class ProfileNotFoundError(ProfileSourceError):
    """Raised when GitHub reports that the requested user does not exist."""


class GitHubProfile(BaseModel):
    """The subset of the GitHub user payload the tracker stores."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    bio: str | None = None
    location: str | None = None
    company: str | None = None
    followers: int | None = None
    following: int | None = None
    repos_url: str


class GitHubClient:
    """Async GitHub client backed by a shared `httpx.AsyncClient`."""

    def __init__(
            self,
            *,
            base_url: str = DEFAULT_BASE_URL,
            timeout_s: float = DEFAULT_TIMEOUT_S,
            http: httpx.AsyncClient | None = None,
    ) -> None:
        self._http = http or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            headers={
                "Accept": "application/vnd.github.v3+json",
                "User-Agent": "github-user-cli",
            },
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get_json(self, url: str) -> Any:
        response = await self._http.get(url)
        response.raise_for_status()
        return response.json()

    async def fetch_profile(self, username: str) -> GitHubProfile:
        """Fetch a user's public profile.

        Raises:
            ProfileNotFoundError: GitHub answered 404 for the username.
            ProfileSourceError: Any other HTTP, transport, timeout, or payload failure.
        """

        try:
            payload = await self._get_json(f"/users/{quote(username, safe='')}")
            return GitHubProfile.model_validate(payload)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise ProfileNotFoundError(f"GitHub user {username} not found") from exc
            logger.error("GitHub profile HTTP error user=%s status=%d", username,
                         exc.response.status_code)
            raise ProfileSourceError(f"Failed to fetch GitHub user: {username}") from exc
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            logger.error("GitHub profile request failed user=%s error=%s", username, exc)
            raise ProfileSourceError(f"Failed to fetch GitHub user: {username}") from exc

    async def _fetch_repo_languages(self, languages_url: str) -> set[str]:
        try:
            languages = await self._get_json(languages_url)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("skipping repository languages url=%s error=%s", languages_url, exc)
            return set()
        if not isinstance(languages, dict):
            logger.warning("skipping repository languages url=%s: unexpected payload", languages_url)
            return set()
        return set(languages)

    async def fetch_languages(self, repos_url: str) -> set[str]:
        """Return the deduplicated set of languages across all repositories at `repos_url`.

        Raises:
            ProfileSourceError: The repository list itself could not be fetched.
        """

        try:
            repos = await self._get_json(repos_url)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("GitHub repository listing failed url=%s error=%s", repos_url, exc)
            raise ProfileSourceError(f"Failed to fetch repositories from: {repos_url}") from exc

        if not isinstance(repos, list):
            raise ProfileSourceError(f"Failed to fetch repositories from: {repos_url}")

        urls = [
            repo["languages_url"]
            for repo in repos
            if isinstance(repo, dict) and repo.get("languages_url")
        ]
        results = await asyncio.gather(*(self._fetch_repo_languages(url) for url in urls))

        merged: set[str] = set()
        for languages in results:
            merged |= languages
        return merged
