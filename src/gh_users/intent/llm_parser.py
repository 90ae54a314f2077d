"""LLM-based intent classifier.

The LLM is only allowed to produce **Intent JSON** (an action plus optional username/filter fields).
The output is validated against the intent schema by the resolver before anything runs.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx

from gh_users.config.settings import Settings


class LLMParserError(RuntimeError):
    """Raised when the LLM call fails or does not return a JSON object."""


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the OpenAI-style API calls (chat completions and transcription)."""

    api_key: str
    model: str = "gpt-4o"
    api_base: str = "https://api.openai.com/v1"
    timeout_s: float = 30.0


PROMPT_PATH = Path(__file__).with_name("prompt_intent_v1.md")

_FENCED_BLOCK_RE = re.compile(r"```[A-Za-z]*[ \t]*\n?(.*?)```", re.DOTALL)
_OPENING_FENCE_RE = re.compile(r"^```[A-Za-z]*[ \t]*\n?")


@lru_cache(maxsize=1)
def system_prompt() -> str:
    """The classifier instructions, read once per process."""

    return PROMPT_PATH.read_text(encoding="utf-8")


def _unfence(reply: str) -> str:
    """Return the body of the first fenced block, or the bare reply when it has none.

    Models often wrap JSON in ```json fences and sometimes add prose around them.
    """

    reply = (reply or "").strip()
    match = _FENCED_BLOCK_RE.search(reply)
    if match:
        return match.group(1).strip()
    return _OPENING_FENCE_RE.sub("", reply).strip()


async def classify_text(
        user_text: str,
        *,
        config: LLMConfig,
        http: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Ask the LLM to classify free text and return the decoded intent object.

    The call is compatible with OpenAI-style `/v1/chat/completions` APIs.
    """

    payload = {
        "model": config.model,
        "temperature": 0,
        "messages": [
            {"role": "system", "content": system_prompt()},
            {"role": "user", "content": user_text},
        ],
    }
    headers = {"Authorization": f"Bearer {config.api_key}"}

    client = http or httpx.AsyncClient(timeout=config.timeout_s)
    try:
        response = await client.post(
            f"{config.api_base.rstrip('/')}/chat/completions",
            json=payload,
            headers=headers,
            timeout=config.timeout_s,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise LLMParserError(f"LLM HTTP error: {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise LLMParserError("LLM connection error") from exc
    finally:
        if http is None:
            await client.aclose()

    try:
        content = response.json()["choices"][0]["message"]["content"]
    except Exception as exc:  # noqa: BLE001
        raise LLMParserError("Unexpected LLM response format") from exc

    try:
        decoded = json.loads(_unfence(content))
    except json.JSONDecodeError as exc:
        raise LLMParserError("LLM did not return valid JSON") from exc

    if not isinstance(decoded, dict):
        raise LLMParserError("LLM did not return a JSON object")
    return decoded


def llm_config_from_settings(settings: Settings) -> LLMConfig:
    """Build the LLM config from application settings.

    Raises:
        LLMParserError: If `LLM_API_KEY` is not configured.
    """

    if not settings.llm_api_key:
        raise LLMParserError("LLM_API_KEY is required")

    return LLMConfig(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        api_base=settings.llm_api_base,
        timeout_s=settings.llm_timeout_s,
    )
