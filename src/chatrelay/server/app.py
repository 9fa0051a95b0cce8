"""Starlette application factory.

``create_app`` builds a fully configured ASGI application with the
relay WebSocket route and the history and health endpoints.  The
returned app is served by uvicorn (see ``chatrelay serve``) or driven
in-process by Starlette's ``TestClient``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from chatrelay.server.endpoints import build_routes
from chatrelay.server.state import ServerState

logger = logging.getLogger(__name__)

_ERRORS = {
    404: "Endpoint not found",
    405: "Method not allowed",
}


async def _http_error(_request: Request, exc: Exception) -> Response:
    """Render routing errors as JSON ``{"error": ...}`` bodies."""
    status_code = exc.status_code if isinstance(exc, HTTPException) else 500
    message = _ERRORS.get(status_code, "Internal server error")
    headers = exc.headers if isinstance(exc, HTTPException) else None
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


def create_app(state: ServerState) -> Starlette:
    """Create the chatrelay ASGI app bound to *state*.

    Cross-origin requests are allowed from any origin; CORS preflight
    requests are answered by the middleware without reaching a route.
    """

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        logger.info(
            "SERVER_STARTED Listening on %s:%d", state.config.host, state.config.port
        )
        try:
            yield
        finally:
            health = state.router.health()
            logger.info(
                "SERVER_STOPPED %d connected, %d users with pending messages",
                health.connected_users,
                health.offline_messages,
            )

    return Starlette(
        routes=build_routes(state),
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            )
        ],
        exception_handlers={404: _http_error, 405: _http_error},
        lifespan=lifespan,
    )
