"""Route registration for the chatrelay server."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chatrelay.server.endpoints import health, history, websocket

if TYPE_CHECKING:
    from starlette.routing import BaseRoute

    from chatrelay.server.state import ServerState


def build_routes(state: ServerState) -> list[BaseRoute]:
    """Build every HTTP and WebSocket route, bound to *state*."""
    return [
        *history.routes(state),
        *health.routes(state),
        *websocket.routes(state),
    ]
