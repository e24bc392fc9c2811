"""WebSocket push channel for live status updates."""

from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from statuswatch.events.emitter import StatusEvent

router = APIRouter(tags=["stream"])


@router.websocket("/ws/status")
async def status_stream(websocket: WebSocket) -> None:
    hub = websocket.app.state.hub
    monitor = websocket.app.state.monitor
    await hub.connect(websocket)
    try:
        await hub.send(websocket, StatusEvent(services=monitor.statuses()))
        # Viewers only listen; incoming frames are read to notice disconnects.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(websocket)
