"""API routes: user CRUD, populate, and the natural-language endpoints.

Routes are thin: they validate the transport-level input, call the command layer or the intent
resolver, and translate the `CommandResult` through the shared status table. Internal error details
are logged by the command layer and never returned to the client.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from gh_users.api.auth import require_basic_auth
from gh_users.errors import CommandResult, http_status_for
from gh_users.intent.schema import UserFilter

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_basic_auth)])

_MISSING_USERNAME = "Invalid or missing username."


class UsernameBody(BaseModel):
    username: str | None = None


class TextBody(BaseModel):
    text: str | None = None


def _container(request: Request) -> Any:
    return request.app.state.container


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _failure(result: CommandResult, generic: str) -> JSONResponse:
    status_code = http_status_for(result)
    if status_code == 404:
        return _error(status_code, "User not found.")
    if status_code == 400:
        return _error(status_code, result.error or _MISSING_USERNAME)
    return _error(status_code, generic)


def _username(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


@router.post("/user", tags=["Users"])
async def add_user(body: UsernameBody, request: Request) -> Any:
    username = _username(body.username)
    if username is None:
        return _error(400, _MISSING_USERNAME)

    result = await _container(request).commands.create(username)
    if not result.ok:
        return _failure(result, "Failed to add user, check logs for details.")
    return {"message": f"User {username} added successfully."}


@router.put("/user", tags=["Users"])
async def update_user(body: UsernameBody, request: Request) -> Any:
    username = _username(body.username)
    if username is None:
        return _error(400, _MISSING_USERNAME)

    result = await _container(request).commands.update(username)
    if not result.ok:
        return _failure(result, "Failed to update user, check logs for details.")
    return {"message": f"User {username} updated successfully."}


@router.delete("/user/{username}", tags=["Users"])
async def delete_user(username: str, request: Request) -> Any:
    name = _username(username)
    if name is None:
        return _error(400, _MISSING_USERNAME)

    result = await _container(request).commands.delete(name)
    if not result.ok:
        return _failure(result, "Failed to delete user, check logs for details.")
    return {"message": f"User {name} deleted successfully."}


@router.get("/user/{username}", tags=["Users"])
async def get_user(username: str, request: Request) -> Any:
    name = _username(username)
    if name is None:
        return _error(400, _MISSING_USERNAME)

    result = await _container(request).commands.get_one(name)
    if not result.ok:
        return _failure(result, "Failed to retrieve user, check logs for details.")
    return result.data


@router.get("/users", tags=["Users"])
async def get_users(
        request: Request,
        location: Annotated[str | None, Query()] = None,
        company: Annotated[str | None, Query()] = None,
        language: Annotated[str | None, Query()] = None,
        sort: Annotated[str | None, Query()] = None,
) -> Any:
    user_filter = UserFilter(location=location, company=company, language=language, sort=sort)
    result = await _container(request).commands.get_many(user_filter)
    if not result.ok:
        return _failure(result, "Failed to retrieve users, check logs for details.")
    return result.data


@router.post("/populate", tags=["Users"])
async def populate(request: Request) -> Any:
    result = await _container(request).commands.populate()
    if not result.ok:
        return _error(http_status_for(result), "Populate users failed, check logs for details.")
    return result.data


@router.post("/ai/text", tags=["AI"])
async def ai_text(body: TextBody, request: Request) -> Any:
    text = (body.text or "").strip()
    if not text:
        return _error(400, "Invalid or missing text.")

    result = await _container(request).resolver.resolve(text)
    if not result.ok:
        return _failure(result, "Failed to execute AI command, check logs for details.")
    return {"data": result.data}


@router.post("/ai/voice", tags=["AI"])
async def ai_voice(request: Request, file: Annotated[UploadFile | None, File()] = None) -> Any:
    if file is None:
        return _error(400, "Audio file is required.")

    audio = await file.read()
    if not audio:
        return _error(400, "Audio file is required.")

    result = await _container(request).resolver.resolve_audio(audio, file.filename or "audio")
    if not result.ok:
        return _failure(result, "Failed to execute AI voice command, check logs for details.")
    return {"data": result.data}
