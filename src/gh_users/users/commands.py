"""User command layer: the CRUD operations behind the HTTP API, the CLI, and the AI front end.

Each operation orchestrates the profile source (GitHub) and the persistence store and returns a
`CommandResult`. Collaborator failures are never swallowed: they are logged with the operation and
subject, and surfaced as `internal` unless they are a recognized not-found/conflict condition.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gh_users.db.users import UserExistsError, UserMissingError
from gh_users.errors import CommandError, CommandResult, ErrorKind
from gh_users.github.client import ProfileNotFoundError, ProfileSourceError
from gh_users.intent.schema import UserFilter
from gh_users.users.models import UserRecord, record_from_profile
from gh_users.users.populate import PopulateFileError, load_user_payloads
from gh_users.users.protocols import ProfileSource, UserStoreProtocol

logger = logging.getLogger(__name__)


# GitHub logins: alphanumerics and single hyphens, at most 39 characters.
_LOGIN_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")


def _require_username(username: str | None, operation: str) -> str:
    value = (username or "").strip()
    if not value:
        raise CommandError(ErrorKind.validation_failed, f"username is required to {operation}")
    if not _LOGIN_RE.match(value):
        raise CommandError(ErrorKind.validation_failed, f"Invalid GitHub username: {value}")
    return value


class UserCommands:
    """The five user CRUD commands plus the batch loaders."""

    def __init__(
            self,
            *,
            store: UserStoreProtocol,
            profiles: ProfileSource,
            populate_path: str | Path | None = None,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._populate_path = populate_path

    async def _run(
            self,
            operation: str,
            subject: str | None,
            call: Callable[[], Awaitable[Any]],
    ) -> CommandResult:
        try:
            return CommandResult.success(await call())
        except CommandError as exc:
            logger.info("%s failed subject=%s kind=%s reason=%s", operation, subject, exc.kind,
                        exc.message)
            return CommandResult.from_error(exc)
        except Exception as exc:
            logger.exception("%s failed subject=%s", operation, subject)
            target = f" {subject}" if subject else ""
            return CommandResult.failure(ErrorKind.internal, f"Failed to {operation}{target}: {exc}")

    async def _fetch_record(self, username: str) -> UserRecord:
        try:
            profile = await self._profiles.fetch_profile(username)
        except ProfileNotFoundError as exc:
            raise CommandError(ErrorKind.not_found, str(exc)) from exc
        except ProfileSourceError as exc:
            raise CommandError(ErrorKind.internal, str(exc)) from exc

        try:
            languages = await self._profiles.fetch_languages(profile.repos_url)
        except ProfileSourceError as exc:
            raise CommandError(ErrorKind.internal, str(exc)) from exc

        return record_from_profile(username, profile, languages)

    async def create(self, username: str) -> CommandResult:
        """Fetch a GitHub user and start tracking them."""

        async def call() -> dict[str, Any]:
            name = _require_username(username, "add user")
            record = await self._fetch_record(name)
            try:
                await self._store.insert_user(record)
            except UserExistsError as exc:
                raise CommandError(ErrorKind.conflict, str(exc)) from exc
            logger.info("User %s added successfully.", name)
            return record.to_payload()

        return await self._run("add user", username, call)

    async def update(self, username: str) -> CommandResult:
        """Refresh a tracked user from GitHub, replacing every field and the language set."""

        async def call() -> dict[str, Any]:
            name = _require_username(username, "update user")
            record = await self._fetch_record(name)
            try:
                await self._store.replace_user(record)
            except UserMissingError as exc:
                raise CommandError(ErrorKind.not_found, str(exc)) from exc
            logger.info("User %s updated successfully.", name)
            return record.to_payload()

        return await self._run("update user", username, call)

    async def delete(self, username: str) -> CommandResult:
        """Stop tracking a user (record and languages removed together)."""

        async def call() -> str:
            name = _require_username(username, "delete user")
            try:
                await self._store.delete_user(name)
            except UserMissingError as exc:
                raise CommandError(ErrorKind.not_found, str(exc)) from exc
            logger.info("User %s deleted successfully.", name)
            return f"User {name} deleted successfully."

        return await self._run("delete user", username, call)

    async def get_one(self, username: str) -> CommandResult:
        async def call() -> dict[str, Any]:
            name = _require_username(username, "get user")
            record = await self._store.fetch_user(name)
            if record is None:
                raise CommandError(ErrorKind.not_found, f"User {name} not found")
            return record.to_payload()

        return await self._run("get user", username, call)

    async def get_many(self, user_filter: UserFilter | None = None) -> CommandResult:
        """List users; zero matches is an empty list, not an error."""

        async def call() -> list[dict[str, Any]]:
            records = await self._store.fetch_users(user_filter or UserFilter())
            return [record.to_payload() for record in records]

        return await self._run("list users", None, call)

    async def bulk_load(self, records: Sequence[Any]) -> CommandResult:
        """Insert a batch of complete user payloads, all or nothing."""

        async def call() -> dict[str, Any]:
            try:
                parsed = [UserRecord.model_validate(record) for record in records]
            except ValidationError as exc:
                raise CommandError(
                    ErrorKind.internal,
                    f"Populate users failed: invalid user payload ({exc.error_count()} errors)",
                ) from exc
            inserted = await self._store.bulk_insert_users(parsed)
            logger.info("Populated %d users.", inserted)
            return {"message": "Populate users finished successfully.", "inserted": inserted}

        return await self._run("populate users", None, call)

    async def populate(self) -> CommandResult:
        """Bulk-load the configured sample-user file."""

        if self._populate_path is None:
            return CommandResult.failure(ErrorKind.internal, "No populate file configured")
        try:
            payloads = load_user_payloads(self._populate_path)
        except PopulateFileError as exc:
            logger.error("populate users failed: %s", exc)
            return CommandResult.failure(ErrorKind.internal, str(exc))
        return await self.bulk_load(payloads)
