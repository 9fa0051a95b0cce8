"""Data models and wire schema for chatrelay.

All models are immutable (frozen) pydantic models with full type
annotations.  Python attribute names are snake_case; the JSON names on
the wire (``from``, ``userId``, ``messageId`` ...) are field aliases, so
every outbound payload is produced with ``by_alias=True``.

All datetime fields are normalized to UTC; naive datetimes are rejected.
User identifiers and message content are kept verbatim (no stripping):
a user id is opaque and content is whatever the sender typed.
"""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(UTC)


def _ensure_utc(v: datetime) -> datetime:
    """Normalize a tz-aware datetime to UTC. Reject naive datetimes."""
    if v.tzinfo is None:
        msg = "Naive datetimes are not allowed; provide a timezone"
        raise ValueError(msg)
    if v.tzinfo is not UTC and not _is_utc(v.tzinfo):
        return v.astimezone(UTC)
    return v


def _is_utc(tz: tzinfo) -> bool:
    """Check if a tzinfo is effectively UTC."""
    return tz.utcoffset(None) == UTC.utcoffset(None)


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the wire (alias) field names."""
        return self.model_dump(mode="json", by_alias=True)


class Message(_WireModel):
    """A single point-to-point chat message.

    Stored once in the chat log at send time, and possibly also in the
    recipient's offline queue.  ``delivered`` records the status at
    send time and is never updated on the archived copy; the copy
    pushed to an online recipient is rendered with ``delivered=True``
    by :meth:`to_event`.
    """

    id: str = Field(min_length=1)
    from_user: str = Field(alias="from", min_length=1)
    to_user: str = Field(alias="to", min_length=1)
    content: str = Field(min_length=1)
    timestamp: datetime = Field(default_factory=utc_now)
    delivered: bool = False

    @field_validator("timestamp", mode="after")
    @classmethod
    def _normalize_timestamp(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    def to_event(
        self,
        kind: Literal["chat_message", "offline_message"],
        *,
        delivered: bool,
    ) -> dict[str, Any]:
        """Render this message as an outbound event of type *kind*."""
        return {"type": kind, **self.to_wire(), "delivered": delivered}


class SendRequest(_WireModel):
    """Inbound ``chat_message`` frame from a client.

    Strict: every field must be a non-empty JSON string.  No coercion
    from numbers or other types.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    type: Literal["chat_message"] = "chat_message"
    from_user: str = Field(alias="from", min_length=1)
    to_user: str = Field(alias="to", min_length=1)
    content: str = Field(min_length=1)


class ConnectionAck(_WireModel):
    """Sent once to a client right after it is registered."""

    type: Literal["connection_ack"] = "connection_ack"
    user_id: str = Field(alias="userId")
    timestamp: datetime = Field(default_factory=utc_now)
    message: str = "Successfully connected to chat server"


class MessageAck(_WireModel):
    """Sent to the sender for every accepted message."""

    type: Literal["message_ack"] = "message_ack"
    message_id: str = Field(alias="messageId")
    timestamp: datetime = Field(default_factory=utc_now)


class ErrorEvent(_WireModel):
    """Reports a rejected frame back to its sender; the connection stays open."""

    type: Literal["error"] = "error"
    message: str


class HistoryResponse(_WireModel):
    """Body of ``GET /messages``."""

    user1: str
    user2: str
    messages: list[Message] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)


class HealthStatus(_WireModel):
    """Body of ``GET /health``.

    ``offline_messages`` counts *users* with pending offline messages,
    not the messages themselves.
    """

    status: str = "healthy"
    connected_users: int = Field(alias="connectedUsers", ge=0)
    offline_messages: int = Field(alias="offlineMessages", ge=0)
    total_chats: int = Field(alias="totalChats", ge=0)


_PREVIEW_LEN = 50


def content_preview(content: str) -> str:
    """Shorten message content for log lines."""
    if len(content) > _PREVIEW_LEN:
        return content[:_PREVIEW_LEN] + "..."
    return content


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class RelayConfig(BaseModel):
    """Validated server configuration.

    Built by :func:`~chatrelay.config.load_config` from CLI overrides,
    environment variables, and an optional ``chatrelay.toml`` file.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    host: str = Field(default="127.0.0.1", min_length=1)
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: LogLevel = "INFO"
    close_replaced_connections: bool = False
    writer_shutdown_timeout: float = Field(default=5.0, gt=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v
