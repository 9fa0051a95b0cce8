"""In-memory stores for connections, offline queues, and chat history."""

from __future__ import annotations

from chatrelay.storage.chatlog import ChatLogStore, chat_key
from chatrelay.storage.mailbox import OfflineMailbox
from chatrelay.storage.registry import Channel, ConnectionRegistry

__all__ = ["Channel", "ChatLogStore", "ConnectionRegistry", "OfflineMailbox", "chat_key"]
