"""Read the bundled sample-user file used by the `populate` command.

The file is a JSON array of complete user payloads:
`{"username", "name", "bio", "location", "company", "followers", "following", "languages": [...]}`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class PopulateFileError(ValueError):
    """Raised when the sample-user file is missing or malformed."""


def load_user_payloads(path: str | Path) -> list[dict[str, Any]]:
    """Load the raw user payloads; record-level validation happens in the command layer."""

    file_path = Path(path)
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise PopulateFileError(f"Cannot read populate file {file_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise PopulateFileError(f"Populate file {file_path} is not valid JSON") from exc

    if not isinstance(payload, list):
        raise PopulateFileError(
            f"Unexpected populate file format in {file_path}: expected a list of users"
        )
    return payload
