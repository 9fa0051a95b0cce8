"""Message routing: validate, log, then deliver or buffer.

``MessageRouter`` owns all relay state (connection registry, offline
mailbox, chat log) and is the only thing that mutates it.  The server
layer injects one router into every handler; nothing here is a module
global.

Every method is synchronous.  Under the asyncio server a call runs to
completion within one event-loop step, so the mutations it makes are
atomic with respect to every other connection's handlers.  Outbound
events are pushed onto each channel's own ordered queue and written
out later by that connection's writer task.

Send path, for a valid request::

    allocate Message -> append to chat log -> ack sender
        -> recipient online?  push chat_message (delivered=true)
        -> otherwise          enqueue in offline mailbox

Delivery is attempted exactly once; there is no retry.
"""

from __future__ import annotations

import itertools
import json
import logging
import time

from pydantic import ValidationError

from chatrelay.models import (
    ConnectionAck,
    ErrorEvent,
    HealthStatus,
    Message,
    MessageAck,
    SendRequest,
    content_preview,
    utc_now,
)
from chatrelay.storage.chatlog import ChatLogStore, chat_key
from chatrelay.storage.mailbox import OfflineMailbox
from chatrelay.storage.registry import Channel, ConnectionRegistry

logger = logging.getLogger(__name__)

WS_POLICY_VIOLATION = 1008

INVALID_JSON = "Invalid JSON format"
INVALID_FORMAT = "Invalid message format. Required: from, to, content"
SELF_SEND = "Cannot send messages to yourself"
REPLACED = "Replaced by a newer connection"


class RejectedRequest(Exception):
    """An inbound frame failed validation.  ``str(exc)`` is sent to the client."""


class MessageIdFactory:
    """Generate ``msg_{epoch_millis}_{counter}`` ids.

    The counter is per factory and strictly increasing, so ids are
    never reused within a process even when the clock does not move.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"msg_{time.time_ns() // 1_000_000}_{next(self._counter)}"


class MessageRouter:
    """Owns relay state and routes messages between connected users."""

    def __init__(
        self,
        *,
        registry: ConnectionRegistry | None = None,
        mailbox: OfflineMailbox | None = None,
        chatlog: ChatLogStore | None = None,
        close_replaced: bool = False,
    ) -> None:
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.mailbox = mailbox if mailbox is not None else OfflineMailbox()
        self.chatlog = chatlog if chatlog is not None else ChatLogStore()
        self.close_replaced = close_replaced
        self._new_id = MessageIdFactory()

    # -- Connection lifecycle --

    def connect(self, channel: Channel) -> list[Message]:
        """Register *channel*, acknowledge it, and flush its offline queue.

        Returns the flushed messages.  The ack always precedes the
        offline messages, which keep their original send order.
        """
        user_id = channel.user_id
        previous = self.registry.register(user_id, channel)
        logger.info("USER_CONNECTED %s", user_id)
        if previous is not None:
            logger.warning("CONNECTION_REPLACED %s", user_id)
            if self.close_replaced and previous.is_open:
                previous.close(WS_POLICY_VIOLATION, REPLACED)

        channel.send(ConnectionAck(user_id=user_id).to_wire())

        pending = self.mailbox.drain(user_id)
        if pending:
            logger.info("DELIVERING_OFFLINE_MESSAGES %s (%d messages)", user_id, len(pending))
            for message in pending:
                channel.send(message.to_event("offline_message", delivered=False))
        return pending

    def disconnect(
        self, channel: Channel, code: int | None = None, reason: str | None = None
    ) -> bool:
        """Remove *channel*'s own registry entry.  Safe to call twice."""
        removed = self.registry.unregister(channel.user_id, channel)
        if removed:
            logger.info(
                "USER_DISCONNECTED %s (code: %s, reason: %s)",
                channel.user_id,
                code,
                reason or "No reason",
            )
        return removed

    # -- Inbound frames --

    def handle_frame(self, channel: Channel, raw: str | bytes) -> Message | None:
        """Parse and dispatch one inbound frame from *channel*.

        Any rejection is reported back on the same channel as an
        ``error`` event; the connection stays open and no state changes.
        """
        try:
            request = self.parse_frame(raw)
        except RejectedRequest as exc:
            channel.send(ErrorEvent(message=str(exc)).to_wire())
            return None
        return self.send(channel, request)

    @staticmethod
    def parse_frame(raw: str | bytes) -> SendRequest:
        """Decode and validate an inbound frame.

        Raises :class:`RejectedRequest` with the client-facing message.
        """
        try:
            payload: object = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as exc:
            logger.warning("MESSAGE_PARSE_ERROR %s", exc)
            raise RejectedRequest(INVALID_JSON) from exc
        if not isinstance(payload, dict):
            logger.warning("MESSAGE_PARSE_ERROR payload is not an object")
            raise RejectedRequest(INVALID_JSON)

        kind = payload.get("type")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        if kind != "chat_message":
            logger.warning("MESSAGE_REJECTED unsupported type %r", kind)
            msg = f"Unsupported message type: {kind}"
            raise RejectedRequest(msg)

        try:
            request = SendRequest.model_validate(payload)
        except ValidationError as exc:
            logger.warning("MESSAGE_REJECTED %d validation error(s)", exc.error_count())
            raise RejectedRequest(INVALID_FORMAT) from exc
        if request.from_user == request.to_user:
            logger.warning("MESSAGE_REJECTED self-send by %s", request.from_user)
            raise RejectedRequest(SELF_SEND)
        return request

    # -- Send --

    def send(self, sender: Channel, request: SendRequest) -> Message:
        """Log a validated message, ack the sender, then deliver or buffer it."""
        message = Message(
            id=self._new_id(),
            from_user=request.from_user,
            to_user=request.to_user,
            content=request.content,
            timestamp=utc_now(),
        )
        logger.info(
            'MESSAGE_SENT %s -> %s: "%s"',
            message.from_user,
            message.to_user,
            content_preview(message.content),
        )
        self.chatlog.append(chat_key(message.from_user, message.to_user), message)
        sender.send(MessageAck(message_id=message.id).to_wire())
        self._deliver(message)
        return message

    def _deliver(self, message: Message) -> None:
        recipient = self.registry.lookup(message.to_user)
        if recipient is not None and recipient.is_open:
            recipient.send(message.to_event("chat_message", delivered=True))
            logger.info("MESSAGE_DELIVERED %s -> %s", message.from_user, message.to_user)
            return
        self.mailbox.enqueue(message.to_user, message)
        logger.info(
            "MESSAGE_BUFFERED %s -> %s (offline)", message.from_user, message.to_user
        )

    # -- Queries --

    def history(self, user_a: str, user_b: str) -> list[Message]:
        """Chat log between two users, oldest first."""
        messages = self.chatlog.history(user_a, user_b)
        logger.info(
            "CHAT_HISTORY_REQUESTED %s <-> %s (%d messages)",
            user_a,
            user_b,
            len(messages),
        )
        return messages

    def health(self) -> HealthStatus:
        return HealthStatus(
            connected_users=len(self.registry),
            offline_messages=self.mailbox.pending_users(),
            total_chats=len(self.chatlog),
        )
