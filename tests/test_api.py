"""HTTP API tests over an in-process ASGI transport with in-memory collaborators."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from gh_users.api.main import create_api
from gh_users.intent.resolver import IntentResolver
from gh_users.users.commands import UserCommands

AUTH = ("admin", "s3cret")


def _container(store, profiles, classified: Any = None, transcript: str | None = None):
    commands = UserCommands(store=store, profiles=profiles)

    async def classify(text: str) -> Any:
        return classified

    async def transcribe(audio: bytes, filename: str) -> str:
        return transcript or ""

    return SimpleNamespace(
        settings=SimpleNamespace(web_user=AUTH[0], web_password=AUTH[1]),
        commands=commands,
        resolver=IntentResolver(commands, classify, transcribe if transcript else None),
    )


def _client(container) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=create_api(container))
    return httpx.AsyncClient(transport=transport, base_url="http://api.test", auth=AUTH)


@pytest.mark.asyncio
async def test_missing_credentials_are_rejected(store, profiles) -> None:
    async with _client(_container(store, profiles)) as client:
        response = await client.get("/users", auth=None)

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Basic"
    assert response.json() == {"error": "Authorization header is missing"}


@pytest.mark.asyncio
async def test_wrong_credentials_are_rejected(store, profiles) -> None:
    async with _client(_container(store, profiles)) as client:
        response = await client.get("/users", auth=("admin", "guess"))

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


@pytest.mark.asyncio
async def test_add_user_success_message(store, profiles) -> None:
    profiles.add("octocat", {"Go"}, name="The Octocat")

    async with _client(_container(store, profiles)) as client:
        response = await client.post("/user", json={"username": "octocat"})

    assert response.status_code == 200
    assert response.json() == {"message": "User octocat added successfully."}
    assert "octocat" in store.users


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"username": ""}, {"username": "   "}])
async def test_add_user_missing_username_is_400(store, profiles, body: dict) -> None:
    async with _client(_container(store, profiles)) as client:
        response = await client.post("/user", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or missing username."}
    assert profiles.calls == []


@pytest.mark.asyncio
async def test_add_existing_user_is_generic_500(store, profiles) -> None:
    profiles.add("octocat", {"Go"})
    container = _container(store, profiles)
    await container.commands.create("octocat")

    async with _client(container) as client:
        response = await client.post("/user", json={"username": "octocat"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to add user, check logs for details."}


@pytest.mark.asyncio
async def test_profile_source_failure_does_not_leak_details(store, profiles) -> None:
    profiles.add("octocat", {"Go"})
    profiles.broken_profiles.add("octocat")

    async with _client(_container(store, profiles)) as client:
        response = await client.post("/user", json={"username": "octocat"})

    assert response.status_code == 500
    assert "GitHub" not in response.json()["error"]


@pytest.mark.asyncio
async def test_update_untracked_user_is_404(store, profiles) -> None:
    profiles.add("octocat", {"Go"})

    async with _client(_container(store, profiles)) as client:
        response = await client.put("/user", json={"username": "octocat"})

    assert response.status_code == 404
    assert response.json() == {"error": "User not found."}


@pytest.mark.asyncio
async def test_update_user_success_message(store, profiles) -> None:
    profiles.add("octocat", {"Go"})
    container = _container(store, profiles)
    await container.commands.create("octocat")
    profiles.add("octocat", {"Rust"})

    async with _client(container) as client:
        response = await client.put("/user", json={"username": "octocat"})

    assert response.status_code == 200
    assert response.json() == {"message": "User octocat updated successfully."}
    assert store.users["octocat"].languages == {"Rust"}


@pytest.mark.asyncio
async def test_delete_user_routes(store, profiles) -> None:
    profiles.add("octocat", {"Go"})
    container = _container(store, profiles)
    await container.commands.create("octocat")

    async with _client(container) as client:
        deleted = await client.delete("/user/octocat")
        again = await client.delete("/user/octocat")
        blank = await client.delete("/user/%20")

    assert deleted.json() == {"message": "User octocat deleted successfully."}
    assert again.status_code == 404
    assert blank.status_code == 400


@pytest.mark.asyncio
async def test_get_user_returns_record(store, profiles) -> None:
    profiles.add("octocat", {"Go", "C"}, location="SF", followers=5)
    container = _container(store, profiles)
    await container.commands.create("octocat")

    async with _client(container) as client:
        found = await client.get("/user/octocat")
        missing = await client.get("/user/nobody")

    assert found.status_code == 200
    assert found.json()["location"] == "SF"
    assert found.json()["languages"] == ["C", "Go"]
    assert missing.status_code == 404
    assert missing.json() == {"error": "User not found."}


@pytest.mark.asyncio
async def test_get_users_passes_filter_to_store(store, profiles) -> None:
    seen: list[Any] = []
    fetch_users = store.fetch_users

    async def recording_fetch(user_filter=None):
        seen.append(user_filter)
        return await fetch_users(user_filter)

    store.fetch_users = recording_fetch

    async with _client(_container(store, profiles)) as client:
        response = await client.get(
            "/users", params={"location": "SF", "language": "Go", "sort": "followers"}
        )

    assert response.status_code == 200
    assert response.json() == []
    assert seen[0].location == "SF"
    assert seen[0].language == "Go"
    assert seen[0].sort == "followers"
    assert seen[0].company is None


@pytest.mark.asyncio
async def test_populate_without_file_is_500(store, profiles) -> None:
    async with _client(_container(store, profiles)) as client:
        response = await client.post("/populate")

    assert response.status_code == 500
    assert response.json() == {"error": "Populate users failed, check logs for details."}


@pytest.mark.asyncio
async def test_ai_text_runs_classified_command(store, profiles) -> None:
    profiles.add("octocat", {"Go"})
    container = _container(store, profiles, classified={"action": "add-user", "username": "octocat"})

    async with _client(container) as client:
        response = await client.post("/ai/text", json={"text": "please track octocat"})

    assert response.status_code == 200
    assert response.json()["data"]["username"] == "octocat"


@pytest.mark.asyncio
async def test_ai_text_validation_message_is_returned(store, profiles) -> None:
    container = _container(store, profiles, classified={"action": "get-user"})

    async with _client(container) as client:
        blank = await client.post("/ai/text", json={"text": "  "})
        no_username = await client.post("/ai/text", json={"text": "show me someone"})

    assert blank.status_code == 400
    assert no_username.status_code == 400
    assert "username" in no_username.json()["error"]


@pytest.mark.asyncio
async def test_ai_text_unknown_action_is_generic_500(store, profiles) -> None:
    container = _container(store, profiles, classified={"action": "rename-user"})

    async with _client(container) as client:
        response = await client.post("/ai/text", json={"text": "rename octocat"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to execute AI command, check logs for details."}


@pytest.mark.asyncio
async def test_ai_voice_transcribes_and_dispatches(store, profiles) -> None:
    container = _container(
        store, profiles, classified={"action": "get-users"}, transcript="list everyone"
    )

    async with _client(container) as client:
        response = await client.post(
            "/ai/voice", files={"file": ("note.wav", b"RIFFdata", "audio/wav")}
        )

    assert response.status_code == 200
    assert response.json() == {"data": []}


@pytest.mark.asyncio
async def test_ai_voice_requires_file(store, profiles) -> None:
    async with _client(_container(store, profiles, transcript="x")) as client:
        response = await client.post("/ai/voice", data={"note": "no audio here"})

    assert response.status_code == 400
    assert response.json() == {"error": "Audio file is required."}
