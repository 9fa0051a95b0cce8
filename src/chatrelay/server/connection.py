"""WebSocket connection wrapper with an ordered outbound queue.

The router never awaits: it calls :meth:`Connection.send`, which only
puts the event on this connection's queue.  A per-connection writer
task drains the queue onto the socket, so events reach the client in
exactly the order the router produced them.

A failed write marks the connection closed.  From then on the router
sees ``is_open == False`` and buffers new messages in the offline
mailbox instead.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from starlette.websockets import WebSocket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CloseRequest:
    code: int
    reason: str


_Outbound = dict[str, Any] | _CloseRequest | None


class Connection:
    """One client's WebSocket, as a :class:`~chatrelay.storage.Channel`."""

    def __init__(
        self, user_id: str, websocket: WebSocket, *, shutdown_timeout: float = 5.0
    ) -> None:
        self._user_id = user_id
        self._websocket = websocket
        self._shutdown_timeout = shutdown_timeout
        self._outbox: asyncio.Queue[_Outbound] = asyncio.Queue()
        self._open = True
        self._writer: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        state = "open" if self._open else "closed"
        return f"<Connection {self._user_id} {state}>"

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> None:
        """Start the writer task.  Must be called on the running event loop."""
        if self._writer is None:
            self._writer = asyncio.create_task(
                self._write_loop(), name=f"chatrelay-writer-{self._user_id}"
            )

    def send(self, event: dict[str, Any]) -> None:
        """Queue *event* for delivery.  Dropped if the connection is closed."""
        if not self._open:
            logger.debug(
                "Dropping %s event for closed connection %s",
                event.get("type"),
                self._user_id,
            )
            return
        self._outbox.put_nowait(event)

    def close(self, code: int, reason: str) -> None:
        """Close the socket after everything already queued has been written."""
        if not self._open:
            return
        self._open = False
        self._outbox.put_nowait(_CloseRequest(code, reason))

    async def aclose(self) -> None:
        """Stop the writer task cooperatively, falling back to hard cancel.

        Called once the client has gone away.  Safe to call repeatedly.
        """
        self._open = False
        writer = self._writer
        if writer is None or writer.done():
            return
        self._outbox.put_nowait(None)
        with suppress(asyncio.CancelledError, TimeoutError):
            await asyncio.wait_for(asyncio.shield(writer), timeout=self._shutdown_timeout)
        if not writer.done():
            writer.cancel()
            with suppress(asyncio.CancelledError):
                await writer

    async def _write_loop(self) -> None:
        while True:
            item = await self._outbox.get()
            if item is None:
                return
            if isinstance(item, _CloseRequest):
                logger.info(
                    "Closing connection %s (code: %d, reason: %s)",
                    self._user_id,
                    item.code,
                    item.reason,
                )
                try:
                    await self._websocket.close(code=item.code, reason=item.reason)
                except Exception:  # noqa: BLE001
                    logger.debug("Close failed for %s", self._user_id, exc_info=True)
                return
            try:
                await self._websocket.send_json(item)
            except Exception:  # noqa: BLE001
                self._open = False
                logger.warning("WEBSOCKET_ERROR %s: send failed", self._user_id, exc_info=True)
                return
