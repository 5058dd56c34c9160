"""
FastAPI application entrypoint for the channel companion.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from companion.api.routes import router as api_router
from companion.core.config import get_settings
from companion.core.errors import CompanionError
from companion.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def handle_companion_error(request: Request, exc: CompanionError) -> JSONResponse:
    """Render domain errors as ``{"error": kind, "message": message}``."""
    if exc.fatal:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="YouTube Channel Companion",
        version="0.1.0",
        description="REST API for managing a YouTube channel's videos and comments.",
    )
    app.add_exception_handler(CompanionError, handle_companion_error)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


__all__ = ["app", "create_app", "handle_companion_error", "run"]


if __name__ == "__main__":  # pragma: no cover - script entry point
    run()
