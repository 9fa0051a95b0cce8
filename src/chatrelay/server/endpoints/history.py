"""``GET /messages``: chat history between two users.

Both ``user1`` and ``user2`` query parameters are required.  The
conversation is looked up by its order-independent chat key, so
``?user1=a&user2=b`` and ``?user1=b&user2=a`` return the same list.
A pair that never talked gets an empty list, not an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse
from starlette.routing import Route

from chatrelay.models import HistoryResponse

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.routing import BaseRoute

    from chatrelay.server.state import ServerState

logger = logging.getLogger(__name__)

MISSING_USERS = "Both user1 and user2 parameters are required"


def routes(state: ServerState) -> list[BaseRoute]:
    """Build the history route."""

    async def messages(request: Request) -> JSONResponse:
        user1 = request.query_params.get("user1", "")
        user2 = request.query_params.get("user2", "")
        if not user1 or not user2:
            logger.info("History query rejected: missing user parameter")
            return JSONResponse({"error": MISSING_USERS}, status_code=400)
        history = state.router.history(user1, user2)
        body = HistoryResponse(
            user1=user1, user2=user2, messages=history, count=len(history)
        )
        return JSONResponse(body.to_wire())

    return [Route("/messages", messages, methods=["GET"])]
