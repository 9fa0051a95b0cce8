"""WebSocket endpoint: identity check, registration, and frame loop.

Clients connect to ``/?userId=<id>``.  Without a ``userId`` the
socket is accepted and immediately closed with code 1008 (policy
violation), so the client sees the close code and reason.  Nothing
is registered.

Lifecycle of an accepted socket::

    accept -> start writer -> router.connect (ack + offline flush)
        -> router.handle_frame per inbound frame
        -> router.disconnect + writer shutdown

A failure on one socket tears down only that socket.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette import status
from starlette.routing import WebSocketRoute

from chatrelay.server.connection import Connection

if TYPE_CHECKING:
    from starlette.routing import BaseRoute
    from starlette.websockets import WebSocket

    from chatrelay.server.state import ServerState

logger = logging.getLogger(__name__)

MISSING_USER_ID = "userId parameter is required"


def routes(state: ServerState) -> list[BaseRoute]:
    """Build the relay WebSocket route."""
    router = state.router

    async def relay_socket(websocket: WebSocket) -> None:
        user_id = websocket.query_params.get("userId", "")
        if not user_id:
            logger.warning("CONNECTION_REJECTED No userId provided")
            await websocket.accept()
            await websocket.close(
                code=status.WS_1008_POLICY_VIOLATION, reason=MISSING_USER_ID
            )
            return

        await websocket.accept()
        connection = Connection(
            user_id, websocket, shutdown_timeout=state.config.writer_shutdown_timeout
        )
        connection.start()
        router.connect(connection)

        code: int | None = None
        reason: str | None = None
        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    code = frame.get("code")
                    reason = frame.get("reason")
                    break
                text = frame.get("text")
                raw = text if text is not None else frame.get("bytes")
                if raw is None:
                    continue
                router.handle_frame(connection, raw)
        except Exception:  # noqa: BLE001
            logger.warning("WEBSOCKET_ERROR %s", user_id, exc_info=True)
        finally:
            router.disconnect(connection, code, reason)
            await connection.aclose()

    return [WebSocketRoute("/", relay_socket)]
