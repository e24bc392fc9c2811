"""Service list management: reload, list, add, delete."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from statuswatch.monitor.service import MutationErrorKind, MutationResult

router = APIRouter(prefix="/config", tags=["config"])

_ERROR_STATUS = {
    MutationErrorKind.VALIDATION: 400,
    MutationErrorKind.NOT_FOUND: 404,
    MutationErrorKind.PERSISTENCE: 500,
}


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _error_response(result: MutationResult, service_id: str | None = None) -> JSONResponse:
    assert result.error is not None
    if result.error is MutationErrorKind.NOT_FOUND:
        content: dict[str, Any] = {"error": "Service not found", "serviceId": service_id, "message": result.message}
    elif result.error is MutationErrorKind.VALIDATION:
        content = {"error": "Invalid service definition", "message": result.message}
    else:
        content = {"error": "Failed to update configuration", "message": result.message}
    return JSONResponse(status_code=_ERROR_STATUS[result.error], content=content)


@router.post("/reload", response_model=None)
async def reload_configuration(request: Request) -> dict[str, Any] | JSONResponse:
    result = request.app.state.monitor.reload()
    if not result.success:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to reload configuration",
                "message": result.message,
                "timestamp": _now(),
            },
        )
    return {"success": True, "message": result.message, "timestamp": _now()}


@router.get("/services")
async def list_services(request: Request) -> dict[str, Any]:
    definitions = request.app.state.monitor.definitions
    return {
        "services": [d.to_dict() for d in definitions],
        "count": len(definitions),
        "timestamp": _now(),
    }


@router.post("/service", status_code=201, response_model=None)
async def add_service(request: Request, payload: Any = Body(None)) -> dict[str, Any] | JSONResponse:
    result = request.app.state.monitor.add_service(payload)
    if not result.ok:
        return _error_response(result)
    assert result.service is not None
    return result.service.to_dict()


@router.delete("/service")
async def delete_service_without_id() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Service ID is required"})


@router.delete("/service/{service_id}", response_model=None)
async def delete_service(request: Request, service_id: str) -> dict[str, Any] | JSONResponse:
    result = request.app.state.monitor.remove_service(service_id)
    if not result.ok:
        return _error_response(result, service_id=service_id)
    assert result.service is not None
    return {
        "success": True,
        "message": f"Service '{service_id}' removed",
        "service": result.service.to_dict(),
    }
