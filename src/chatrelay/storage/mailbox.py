"""Offline mailbox: messages waiting for a user to come back online.

One FIFO queue per recipient.  ``drain`` hands back the whole queue and
removes it in the same step, so a message enqueued afterwards starts a
fresh queue instead of being lost or delivered twice.  A user with an
empty queue is indistinguishable from a user with no queue.
"""

from __future__ import annotations

from collections import deque

from chatrelay.models import Message


class OfflineMailbox:
    """In-memory per-user FIFO of undelivered messages."""

    def __init__(self) -> None:
        self._queues: dict[str, deque[Message]] = {}

    def enqueue(self, user_id: str, message: Message) -> None:
        """Append *message* to the tail of *user_id*'s queue."""
        self._queues.setdefault(user_id, deque()).append(message)

    def drain(self, user_id: str) -> list[Message]:
        """Remove and return every pending message for *user_id*, oldest first."""
        queue = self._queues.pop(user_id, None)
        if not queue:
            return []
        return list(queue)

    def pending(self, user_id: str) -> list[Message]:
        """Pending messages for *user_id* without removing them."""
        return list(self._queues.get(user_id, ()))

    def pending_users(self) -> int:
        """Number of users with at least one pending message."""
        return sum(1 for q in self._queues.values() if q)

    def __len__(self) -> int:
        """Total number of pending messages across all users."""
        return sum(len(q) for q in self._queues.values())
