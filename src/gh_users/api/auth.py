"""HTTP Basic authentication for the API routes.

Credentials come from `WEB_USER` / `WEB_PASSWORD`. The interactive docs (`/docs`, `/openapi.json`)
are mounted outside the protected router and stay public.
"""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

_basic = HTTPBasic(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Basic"},
    )


def require_basic_auth(
        request: Request,
        credentials: Annotated[HTTPBasicCredentials | None, Depends(_basic)],
) -> str:
    """Reject the request unless it carries the configured Basic credentials."""

    if credentials is None:
        raise _unauthorized("Authorization header is missing")

    settings = request.app.state.container.settings
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.web_user.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.web_password.encode("utf-8")
    )
    if not (user_ok and password_ok):
        raise _unauthorized("Invalid credentials")
    return credentials.username
