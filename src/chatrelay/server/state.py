"""Server state container for chatrelay endpoints.

All shared state lives in a frozen dataclass.  Endpoint closures
capture it directly when their routes are built; the mutable relay
state itself is owned by the :class:`~chatrelay.router.MessageRouter`.
"""

from __future__ import annotations

from dataclasses import dataclass

from chatrelay.models import RelayConfig
from chatrelay.router import MessageRouter


@dataclass(frozen=True)
class ServerState:
    """Immutable container for all server-wide shared state."""

    config: RelayConfig
    router: MessageRouter


def create_state(
    config: RelayConfig,
    *,
    router: MessageRouter | None = None,
) -> ServerState:
    """Create a ``ServerState`` from config.

    An explicit *router* wins (tests inject pre-populated ones);
    otherwise a fresh, empty router is built from *config*.
    """
    if router is None:
        router = MessageRouter(close_replaced=config.close_replaced_connections)
    return ServerState(config=config, router=router)
