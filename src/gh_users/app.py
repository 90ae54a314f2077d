"""Application composition root.

This module wires together configuration, the DB pool, the GitHub client, the LLM collaborators,
the user command layer, and the intent resolver. Both the HTTP API and the CLI build one `App`.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from psycopg_pool import AsyncConnectionPool

from gh_users.config.settings import Settings
from gh_users.db.pool import create_pool
from gh_users.db.users import UserStore
from gh_users.github.client import GitHubClient
from gh_users.intent.llm_parser import LLMParserError, classify_text, llm_config_from_settings
from gh_users.intent.resolver import IntentResolver
from gh_users.intent.transcribe import TranscriptionError, transcribe_audio
from gh_users.users.commands import UserCommands


@dataclass(frozen=True)
class App:
    """Shared application dependencies for the API routes and CLI commands."""

    settings: Settings
    pool: AsyncConnectionPool
    github: GitHubClient
    llm_http: httpx.AsyncClient
    commands: UserCommands
    resolver: IntentResolver

    async def open(self) -> None:
        await self.pool.open(wait=True)

    async def close(self) -> None:
        await self.github.aclose()
        await self.llm_http.aclose()
        await self.pool.close()


def create_app(settings: Settings) -> App:
    """Create the application container.

    Note:
        The returned DB pool is not opened. Call `await app.open()` at startup and
        `await app.close()` at shutdown.
    """

    pool = create_pool(settings.database_url, max_size=settings.db_pool_max_size)
    github = GitHubClient(base_url=settings.github_api_url, timeout_s=settings.http_timeout_s)
    llm_http = httpx.AsyncClient(timeout=settings.llm_timeout_s)

    commands = UserCommands(
        store=UserStore(pool),
        profiles=github,
        populate_path=settings.populate_path,
    )

    async def classify(text: str) -> dict:
        return await classify_text(text, config=llm_config_from_settings(settings), http=llm_http)

    async def transcribe(audio: bytes, filename: str) -> str:
        try:
            config = llm_config_from_settings(settings)
        except LLMParserError as exc:
            raise TranscriptionError(str(exc)) from exc
        return await transcribe_audio(audio, filename, config=config, http=llm_http)

    resolver = IntentResolver(commands, classify, transcribe)
    return App(
        settings=settings,
        pool=pool,
        github=github,
        llm_http=llm_http,
        commands=commands,
        resolver=resolver,
    )
