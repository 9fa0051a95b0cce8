"""``GET /health``: live connection, pending mailbox, and chat counts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import JSONResponse
from starlette.routing import Route

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.routing import BaseRoute

    from chatrelay.server.state import ServerState


def routes(state: ServerState) -> list[BaseRoute]:
    """Build the health route."""

    async def health(_request: Request) -> JSONResponse:
        return JSONResponse(state.router.health().to_wire())

    return [Route("/health", health, methods=["GET"])]
