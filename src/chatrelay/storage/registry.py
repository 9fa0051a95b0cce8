"""Connection registry: which user is online, and on which channel.

Maps a user id to exactly one live outbound channel.  Registration is
"last connection wins": a second connection under the same user id
silently replaces the first.  The replaced channel is returned so the
caller can decide what to do with it, but the registry itself never
closes anything.

Not thread-safe.  All access happens on the server's event loop.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Protocol


class Channel(Protocol):
    """Outbound side of a client connection, as seen by the router.

    ``send`` must not block: implementations queue the event and
    write it out later, in order.
    """

    @property
    def user_id(self) -> str: ...

    @property
    def is_open(self) -> bool: ...

    def send(self, event: dict[str, Any]) -> None: ...

    def close(self, code: int, reason: str) -> None: ...


class ConnectionRegistry:
    """In-memory ``user_id -> Channel`` map."""

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}

    def register(self, user_id: str, channel: Channel) -> Channel | None:
        """Register *channel* for *user_id*, returning any channel it replaced."""
        previous = self._channels.get(user_id)
        self._channels[user_id] = channel
        if previous is channel:
            return None
        return previous

    def lookup(self, user_id: str) -> Channel | None:
        return self._channels.get(user_id)

    def unregister(self, user_id: str, channel: Channel | None = None) -> bool:
        """Remove the entry for *user_id*.

        When *channel* is given, the entry is removed only if it is
        still that exact channel, so an orphaned connection closing late
        never evicts the connection that replaced it.  Returns whether
        anything was removed; repeated calls are harmless.
        """
        current = self._channels.get(user_id)
        if current is None:
            return False
        if channel is not None and current is not channel:
            return False
        del self._channels[user_id]
        return True

    def users(self) -> list[str]:
        """Currently registered user ids, in registration order."""
        return list(self._channels)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._channels))
