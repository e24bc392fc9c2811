"""Tests for status event publishing and WebSocket fan-out."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from statuswatch.events.emitter import STATUS_UPDATE, Publisher, StatusEvent
from statuswatch.events.websocket import WebSocketHub
from statuswatch.monitor.models import CheckResult, ServiceState


async def _never_returns(*args) -> None:
    await asyncio.Event().wait()


def _event() -> StatusEvent:
    return StatusEvent(
        services=[
            CheckResult(
                id="a",
                name="A",
                status=ServiceState.HEALTHY,
                response_time=5.0,
                last_checked=datetime.now(UTC),
            )
        ]
    )


class TestStatusEvent:
    def test_to_dict(self):
        evt = _event()
        out = evt.to_dict()
        assert out["event"] == STATUS_UPDATE
        assert out["timestamp"] == evt.timestamp.isoformat()
        assert out["services"][0]["id"] == "a"

    def test_default_services(self):
        assert StatusEvent().services == []


class TestPublisher:
    @pytest.mark.asyncio
    async def test_publish_to_subscribers(self):
        publisher = Publisher()
        s1, s2 = AsyncMock(), AsyncMock()
        publisher.add_subscriber(s1)
        publisher.add_subscriber(s2)
        evt = _event()
        await publisher.publish(evt)
        s1.on_event.assert_called_once_with(evt)
        s2.on_event.assert_called_once_with(evt)

    @pytest.mark.asyncio
    async def test_subscriber_error_does_not_propagate(self):
        publisher = Publisher()
        bad, good = AsyncMock(), AsyncMock()
        bad.on_event.side_effect = RuntimeError("subscriber crash")
        publisher.add_subscriber(bad)
        publisher.add_subscriber(good)
        await publisher.publish(_event())
        good.on_event.assert_called_once()

    @pytest.mark.asyncio
    async def test_stalled_subscriber_is_cut_off(self):
        publisher = Publisher(timeout=0.01)
        stalled, good = AsyncMock(), AsyncMock()
        stalled.on_event.side_effect = _never_returns
        publisher.add_subscriber(stalled)
        publisher.add_subscriber(good)
        await asyncio.wait_for(publisher.publish(_event()), timeout=1)
        good.on_event.assert_called_once()
        assert publisher.subscriber_count == 2

    @pytest.mark.asyncio
    async def test_remove_subscriber(self):
        publisher = Publisher()
        sub = AsyncMock()
        publisher.add_subscriber(sub)
        publisher.remove_subscriber(sub)
        publisher.remove_subscriber(sub)
        await publisher.publish(_event())
        sub.on_event.assert_not_called()
        assert publisher.subscriber_count == 0


class TestWebSocketHub:
    @pytest.mark.asyncio
    async def test_connect_accepts(self):
        hub = WebSocketHub()
        ws = AsyncMock()
        await hub.connect(ws)
        ws.accept.assert_awaited_once()
        assert hub.connection_count == 1
        await hub.disconnect(ws)
        assert hub.connection_count == 0

    @pytest.mark.asyncio
    async def test_broadcast(self):
        hub = WebSocketHub()
        ws1, ws2 = AsyncMock(), AsyncMock()
        await hub.connect(ws1)
        await hub.connect(ws2)
        evt = _event()
        await hub.on_event(evt)
        ws1.send_json.assert_awaited_once_with(evt.to_dict())
        ws2.send_json.assert_awaited_once_with(evt.to_dict())

    @pytest.mark.asyncio
    async def test_drops_dead_viewers(self):
        hub = WebSocketHub()
        alive, dead = AsyncMock(), AsyncMock()
        dead.send_json.side_effect = RuntimeError("socket closed")
        await hub.connect(alive)
        await hub.connect(dead)
        await hub.on_event(_event())
        assert hub.connection_count == 1
        await hub.on_event(_event())
        assert alive.send_json.await_count == 2
        assert dead.send_json.await_count == 1

    @pytest.mark.asyncio
    async def test_drops_stalled_viewers(self):
        hub = WebSocketHub(send_timeout=0.01)
        alive, stalled = AsyncMock(), AsyncMock()
        stalled.send_json.side_effect = _never_returns
        await hub.connect(alive)
        await hub.connect(stalled)
        await asyncio.wait_for(hub.on_event(_event()), timeout=1)
        assert hub.connection_count == 1
        alive.send_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_viewers(self):
        await WebSocketHub().on_event(_event())
