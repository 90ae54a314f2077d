"""HTTP API process entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gh_users import __version__
from gh_users.api.routes import router
from gh_users.app import create_app
from gh_users.config.logging import configure_logging
from gh_users.config.settings import load_settings

logger = logging.getLogger(__name__)


async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("rejected request: %s", exc.errors())
    return JSONResponse({"error": "Invalid request body or parameters."}, status_code=400)


def create_api(container: Any | None = None) -> FastAPI:
    """Build the FastAPI application.

    If `container` is given it is used as-is (tests); otherwise the lifespan loads settings, builds
    the application container, and opens/closes its resources.
    """

    @asynccontextmanager
    async def lifespan(api: FastAPI) -> AsyncIterator[None]:
        if container is not None:
            yield
            return

        settings = load_settings()
        configure_logging(settings.log_level)
        app = create_app(settings)
        await app.open()
        api.state.container = app
        try:
            yield
        finally:
            logger.info("shutting down")
            await app.close()

    api = FastAPI(title="GitHub Users Web Server API", version=__version__, lifespan=lifespan)
    if container is not None:
        api.state.container = container

    api.add_exception_handler(StarletteHTTPException, _http_error)
    api.add_exception_handler(RequestValidationError, _validation_error)
    api.include_router(router)
    return api


def run() -> None:
    """Serve the API with uvicorn using `HTTP_HOST` / `HTTP_PORT`."""

    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_api(), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    run()
