"""Testing utilities for chatrelay."""

from __future__ import annotations

from chatrelay.testing.recording import RecordingChannel

__all__ = ["RecordingChannel"]
