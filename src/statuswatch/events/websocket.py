"""WebSocket fan-out of status events to connected viewers."""

from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

from statuswatch.events.emitter import StatusEvent

logger = logging.getLogger(__name__)


class WebSocketHub:
    """Tracks connected viewers. Implements the Subscriber protocol.

    A viewer that does not accept a push within *send_timeout* seconds is
    dropped along with viewers whose socket errored.
    """

    def __init__(self, send_timeout: float = 5.0) -> None:
        self._connections: set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._send_timeout = send_timeout

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("Viewer connected (%d total)", len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("Viewer disconnected (%d total)", len(self._connections))

    async def send(self, websocket: WebSocket, event: StatusEvent) -> None:
        await websocket.send_json(event.to_dict())

    async def on_event(self, event: StatusEvent) -> None:
        async with self._lock:
            targets = list(self._connections)
        if not targets:
            return
        payload = event.to_dict()
        results = await asyncio.gather(
            *(asyncio.wait_for(ws.send_json(payload), timeout=self._send_timeout) for ws in targets),
            return_exceptions=True,
        )
        dead = [ws for ws, result in zip(targets, results) if isinstance(result, Exception)]
        if dead:
            async with self._lock:
                self._connections.difference_update(dead)
            logger.info("Dropped %d unreachable or stalled viewer(s)", len(dead))
