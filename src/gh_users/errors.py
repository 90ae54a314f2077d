"""Shared error taxonomy and the uniform command outcome type.

Every command-layer operation returns a `CommandResult`: either a success payload or a typed error
(`ErrorKind` + message). The HTTP and CLI boundaries translate the kind into a status code or exit
code using the tables below; they never inspect the error text when a kind is available.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Closed vocabulary of failure kinds shared by every layer."""

    validation_failed = "validation_failed"
    not_found = "not_found"
    conflict = "conflict"
    unknown_action = "unknown_action"
    internal = "internal"


_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.validation_failed: "Invalid or missing input",
    ErrorKind.not_found: "Not found",
    ErrorKind.conflict: "Already exists",
    ErrorKind.unknown_action: "Unknown action",
    ErrorKind.internal: "Internal error",
}


class CommandError(Exception):
    """A command failure with a typed kind.

    Raised inside the command and resolver layers, and converted into a failed `CommandResult` at
    the command boundary.
    """

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        self.kind = kind
        self.message = message.strip() or _DEFAULT_MESSAGES[kind]
        super().__init__(self.message)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single command: exactly one of `data` or `error` is meaningful."""

    data: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Any) -> CommandResult:
        return cls(data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> CommandResult:
        return cls(error=message.strip() or _DEFAULT_MESSAGES[kind], error_kind=kind)

    @classmethod
    def from_error(cls, exc: CommandError) -> CommandResult:
        return cls.failure(exc.kind, exc.message)


def error_kind_of(result: CommandResult) -> ErrorKind | None:
    """Return the failure kind of a result (`None` for success).

    Results produced by this package always carry a typed kind. For results that only carry text,
    the legacy keyword rule applies: text containing "not found" is `not_found`, anything else is
    `internal`.
    """

    if result.ok:
        return None
    if result.error_kind is not None:
        return result.error_kind
    if "not found" in (result.error or "").lower():
        return ErrorKind.not_found
    return ErrorKind.internal


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.not_found: 404,
    ErrorKind.validation_failed: 400,
}
HTTP_STATUS_DEFAULT = 500

CLI_EXIT_SUCCESS = 0
CLI_EXIT_CODE_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.internal: 1,
    ErrorKind.validation_failed: 2,
    ErrorKind.unknown_action: 2,
    ErrorKind.not_found: 3,
    ErrorKind.conflict: 4,
}


def http_status_for(result: CommandResult) -> int:
    """Map a command result to the HTTP status code the API responds with."""

    kind = error_kind_of(result)
    if kind is None:
        return 200
    return HTTP_STATUS_BY_KIND.get(kind, HTTP_STATUS_DEFAULT)


def exit_code_for(result: CommandResult) -> int:
    """Map a command result to a CLI process exit code."""

    kind = error_kind_of(result)
    if kind is None:
        return CLI_EXIT_SUCCESS
    return CLI_EXIT_CODE_BY_KIND[kind]
