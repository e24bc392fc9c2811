"""Service status endpoints, served from the status cache."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["status"])


@router.get("/status")
async def get_all_statuses(request: Request) -> dict[str, Any]:
    monitor = request.app.state.monitor
    statuses = monitor.statuses()
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "services": [s.to_dict() for s in statuses],
        "summary": monitor.summary(),
    }


@router.get("/status/{service_id}", response_model=None)
async def get_service_status(request: Request, service_id: str) -> dict[str, Any] | JSONResponse:
    result = request.app.state.monitor.status(service_id)
    if result is None:
        return JSONResponse(
            status_code=404,
            content={"error": "Service not found", "serviceId": service_id},
        )
    return result.to_dict()
