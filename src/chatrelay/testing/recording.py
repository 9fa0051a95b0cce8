"""In-memory channel that records what the router sends it.

Stands in for a live WebSocket connection when exercising
:class:`~chatrelay.router.MessageRouter` directly::

    alice = RecordingChannel("alice")
    router.connect(alice)
    router.handle_frame(alice, '{"type": "chat_message", ...}')
    assert alice.types() == ["connection_ack", "message_ack"]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RecordingChannel:
    """A :class:`~chatrelay.storage.Channel` that keeps every event."""

    user_id: str
    is_open: bool = True
    events: list[dict[str, Any]] = field(default_factory=list)
    closed_with: tuple[int, str] | None = None

    def send(self, event: dict[str, Any]) -> None:
        if self.is_open:
            self.events.append(event)

    def close(self, code: int, reason: str) -> None:
        self.is_open = False
        self.closed_with = (code, reason)

    def types(self) -> list[str]:
        """Event ``type`` values in the order they were sent."""
        return [e["type"] for e in self.events]

    def of_type(self, kind: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["type"] == kind]

    def clear(self) -> None:
        self.events.clear()
