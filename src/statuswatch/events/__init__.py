"""Status event publishing for StatusWatch."""

from __future__ import annotations

from statuswatch.events.emitter import STATUS_UPDATE, Publisher, StatusEvent, Subscriber
from statuswatch.events.websocket import WebSocketHub

__all__ = [
    "STATUS_UPDATE",
    "Publisher",
    "StatusEvent",
    "Subscriber",
    "WebSocketHub",
]
