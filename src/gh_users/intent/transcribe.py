"""Speech-to-text for voice requests (OpenAI-style `/audio/transcriptions`)."""

from __future__ import annotations

import httpx

from gh_users.intent.llm_parser import LLMConfig

TRANSCRIPTION_MODEL = "whisper-1"
TRANSCRIPTION_PROMPT = "Transcribe the following voice recording."


class TranscriptionError(RuntimeError):
    """Raised when audio cannot be transcribed into non-empty text."""


def _transcriptions_url(api_base: str) -> str:
    return api_base.rstrip("/") + "/audio/transcriptions"


async def transcribe_audio(
        audio: bytes,
        filename: str,
        *,
        config: LLMConfig,
        http: httpx.AsyncClient | None = None,
) -> str:
    """Upload `audio` as multipart form data and return the transcript text."""

    if not audio:
        raise TranscriptionError("Audio payload is empty")

    client = http or httpx.AsyncClient(timeout=config.timeout_s)
    try:
        response = await client.post(
            _transcriptions_url(config.api_base),
            headers={"Authorization": f"Bearer {config.api_key}"},
            data={"model": TRANSCRIPTION_MODEL, "prompt": TRANSCRIPTION_PROMPT},
            files={"file": (filename or "audio", audio)},
            timeout=config.timeout_s,
        )
        response.raise_for_status()
        decoded = response.json()
    except httpx.HTTPError as exc:
        raise TranscriptionError("Failed to transcribe audio.") from exc
    except ValueError as exc:
        raise TranscriptionError("Unexpected transcription response format") from exc
    finally:
        if http is None:
            await client.aclose()

    transcript = decoded.get("text") if isinstance(decoded, dict) else None
    if not isinstance(transcript, str) or not transcript.strip():
        raise TranscriptionError("No transcript found in the response.")
    return transcript.strip()
