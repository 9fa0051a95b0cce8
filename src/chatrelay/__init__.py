"""chatrelay: a real-time point-to-point message relay.

Clients connect over WebSocket with a user id, exchange text messages,
get messages sent while they were away on their next connect, and can
fetch the history of any conversation over HTTP.
"""

from __future__ import annotations
