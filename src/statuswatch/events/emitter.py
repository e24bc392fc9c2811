"""Status publisher, subscriber protocol, and status event dataclass."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from statuswatch.monitor.models import CheckResult

logger = logging.getLogger(__name__)

STATUS_UPDATE = "status-update"


@dataclass
class StatusEvent:
    """Full cache snapshot pushed after a completed poll round."""

    services: list[CheckResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    event_type: str = STATUS_UPDATE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event_type,
            "timestamp": self.timestamp.isoformat(),
            "services": [s.to_dict() for s in self.services],
        }


class Subscriber(Protocol):
    """Protocol for consumers of status events."""

    async def on_event(self, event: StatusEvent) -> None: ...


class Publisher:
    """Fans status events out to subscribers; one failing subscriber never blocks the rest.

    Each delivery is bounded by *timeout* seconds so a stalled subscriber
    cannot hold a poll round open.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self._subscribers: list[Subscriber] = []
        self._timeout = timeout

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def add_subscriber(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def remove_subscriber(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    async def publish(self, event: StatusEvent) -> None:
        for subscriber in list(self._subscribers):
            try:
                await asyncio.wait_for(subscriber.on_event(event), timeout=self._timeout)
            except TimeoutError:
                logger.warning("Status subscriber %r timed out after %.1fs", subscriber, self._timeout)
            except Exception:
                logger.exception("Status subscriber error")
