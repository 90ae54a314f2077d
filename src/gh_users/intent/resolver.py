"""Intent resolver: validate a classified intent and dispatch it to the user command layer.

Validation happens before any collaborator is touched: an action outside the grammar is
`unknown_action`, a missing username for a single-user action is `validation_failed`. The chosen
command's `CommandResult` is returned unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from gh_users.errors import CommandError, CommandResult, ErrorKind
from gh_users.intent.llm_parser import LLMParserError
from gh_users.intent.schema import Action, Intent
from gh_users.intent.transcribe import TranscriptionError
from gh_users.users.commands import UserCommands

logger = logging.getLogger(__name__)

Classifier = Callable[[str], Awaitable[dict[str, Any]]]
Transcriber = Callable[[bytes, str], Awaitable[str]]

USERNAME_ACTIONS: frozenset[Action] = frozenset(
    {Action.create, Action.update, Action.delete, Action.get_one}
)


def intent_from_obj(obj: Any) -> Intent:
    """Validate a decoded classifier object into an `Intent`.

    Raises:
        CommandError: `unknown_action` if the action is outside the grammar, `validation_failed`
            for any other shape problem.
    """

    if not isinstance(obj, dict):
        raise CommandError(ErrorKind.validation_failed, "Classifier returned a non-object intent")

    action = obj.get("action")
    if isinstance(action, str):
        action = action.strip().lower()
    if not isinstance(action, str) or action not in {a.value for a in Action}:
        raise CommandError(ErrorKind.unknown_action, f"Unknown action: {obj.get('action')}")

    try:
        return Intent.model_validate({**obj, "action": action})
    except ValidationError as exc:
        raise CommandError(
            ErrorKind.validation_failed,
            f"Invalid intent for action {action}: {exc.error_count()} validation errors",
        ) from exc


class IntentResolver:
    """Turns free text (or audio) into exactly one user command."""

    def __init__(
            self,
            commands: UserCommands,
            classify: Classifier,
            transcribe: Transcriber | None = None,
    ) -> None:
        self._commands = commands
        self._classify = classify
        self._transcribe = transcribe
        self._handlers: dict[Action, Callable[[Intent], Awaitable[CommandResult]]] = {
            Action.create: lambda intent: self._commands.create(intent.username),
            Action.update: lambda intent: self._commands.update(intent.username),
            Action.delete: lambda intent: self._commands.delete(intent.username),
            Action.get_one: lambda intent: self._commands.get_one(intent.username),
            Action.get_many: lambda intent: self._commands.get_many(intent.to_filter()),
            Action.bulk_load: lambda _intent: self._commands.populate(),
        }

    async def dispatch(self, intent: Intent) -> CommandResult:
        """Validate the intent's required fields and run the matching command."""

        if intent.action in USERNAME_ACTIONS and not intent.username:
            return CommandResult.failure(
                ErrorKind.validation_failed,
                f"username is required for action {intent.action.value}",
            )

        try:
            handler = self._handlers[intent.action]
        except KeyError:
            return CommandResult.failure(ErrorKind.unknown_action, f"Unknown action: {intent.action}")

        logger.info("dispatching action=%s username=%s", intent.action.value, intent.username)
        return await handler(intent)

    async def resolve(self, text: str) -> CommandResult:
        """Classify free text and run the resulting command."""

        if not (text or "").strip():
            return CommandResult.failure(ErrorKind.validation_failed, "Invalid or missing text.")

        try:
            obj = await self._classify(text)
        except LLMParserError as exc:
            logger.error("classification failed: %s", exc)
            return CommandResult.failure(ErrorKind.internal, f"Failed to classify request: {exc}")

        try:
            intent = intent_from_obj(obj)
        except CommandError as exc:
            logger.info("rejected intent kind=%s reason=%s", exc.kind, exc.message)
            return CommandResult.from_error(exc)

        return await self.dispatch(intent)

    async def resolve_audio(self, audio: bytes, filename: str) -> CommandResult:
        """Transcribe a voice request, then resolve it like text."""

        if self._transcribe is None:
            return CommandResult.failure(ErrorKind.internal, "Voice requests are not configured")

        try:
            transcript = await self._transcribe(audio, filename)
        except TranscriptionError as exc:
            logger.error("transcription failed file=%s: %s", filename, exc)
            return CommandResult.failure(ErrorKind.internal, f"Failed to transcribe audio: {exc}")

        logger.info("transcribed voice request file=%s chars=%d", filename, len(transcript))
        return await self.resolve(transcript)
