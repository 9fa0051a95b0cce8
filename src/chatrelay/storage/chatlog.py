"""Per-conversation chat history.

Every accepted message is appended exactly once, at send time, to the
log of the unordered pair of users it was exchanged between.  Logs are
append-only: never reordered, deduplicated, or trimmed.
"""

from __future__ import annotations

from chatrelay.models import Message

CHAT_KEY_SEPARATOR = ":"


def chat_key(user_a: str, user_b: str) -> str:
    """Canonical key for the conversation between two users.

    Order-independent: ``chat_key("a", "b") == chat_key("b", "a")``.
    """
    first, second = sorted((user_a, user_b))
    return f"{first}{CHAT_KEY_SEPARATOR}{second}"


class ChatLogStore:
    """In-memory ``chat_key -> [Message]`` store."""

    def __init__(self) -> None:
        self._logs: dict[str, list[Message]] = {}

    def append(self, key: str, message: Message) -> None:
        self._logs.setdefault(key, []).append(message)

    def read(self, key: str) -> list[Message]:
        """Full log for *key*, oldest first; empty if there is none."""
        return list(self._logs.get(key, ()))

    def history(self, user_a: str, user_b: str) -> list[Message]:
        """Full log between two users, in either argument order."""
        return self.read(chat_key(user_a, user_b))

    def keys(self) -> list[str]:
        return list(self._logs)

    def __len__(self) -> int:
        """Number of conversations with any history."""
        return len(self._logs)
