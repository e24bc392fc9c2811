"""Shared fixtures for StatusWatch tests."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict

import pytest

from statuswatch.config.models import ServiceDefinition, ServiceDocument, Settings
from statuswatch.config.store import JsonConfigStore
from statuswatch.monitor.models import CheckResult, ServiceState

SAMPLE_DOCUMENT: Dict[str, Any] = {
    "services": [
        {
            "id": "api-gateway",
            "name": "API Gateway",
            "endpoint": "http://localhost:8080/health",
            "type": "internal",
            "category": "api",
            "pollInterval": 30,
            "criticalService": True,
        },
        {
            "id": "billing",
            "name": "Billing",
            "endpoint": "http://localhost:8090/health",
            "type": "internal",
            "category": "api",
            "pollInterval": 30,
        },
        {
            "id": "payments-provider",
            "name": "Payments Provider",
            "endpoint": "https://payments.example.com/status",
            "type": "third-party",
            "category": "payments",
            "pollInterval": 60,
            "metadata": {"owner": "finance"},
        },
    ],
    "settings": {
        "defaultPollInterval": 30,
        "timeoutThreshold": 5000,
        "warningThreshold": 2000,
    },
}


class FakeChecker:
    """Stands in for check_service; records calls and can hold rounds open."""

    def __init__(self, statuses: Dict[str, ServiceState] | None = None, gate: asyncio.Event | None = None) -> None:
        self.statuses = statuses or {}
        self.gate = gate
        self.calls: list[str] = []

    async def __call__(self, definition: ServiceDefinition, settings: Settings) -> CheckResult:
        self.calls.append(definition.id)
        if self.gate is not None:
            await self.gate.wait()
        status = self.statuses.get(definition.id, ServiceState.HEALTHY)
        return CheckResult(
            id=definition.id,
            name=definition.name,
            status=status,
            response_time=12.0,
            last_checked=datetime.now(UTC),
            message=None if status is ServiceState.HEALTHY else "HTTP 503",
            type=definition.type,
            category=definition.category,
        )


class ManualClock:
    """Replacement for asyncio.sleep whose ticks are fired by the test."""

    def __init__(self) -> None:
        self.waiters: list[tuple[float, asyncio.Event]] = []

    async def sleep(self, seconds: float) -> None:
        event = asyncio.Event()
        self.waiters.append((seconds, event))
        await event.wait()

    def fire(self) -> None:
        waiters, self.waiters = self.waiters, []
        for _, event in waiters:
            event.set()


async def settle(rounds: int = 5) -> None:
    """Let freshly scheduled tasks run a few steps."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture()
def sample_document() -> ServiceDocument:
    return ServiceDocument.model_validate(SAMPLE_DOCUMENT)


@pytest.fixture()
def sample_document_dict() -> Dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_DOCUMENT))


@pytest.fixture()
def services_file(tmp_path: Path) -> Path:
    """Write the sample document to a temp services.json and return the path."""
    path = tmp_path / "services.json"
    path.write_text(json.dumps(SAMPLE_DOCUMENT), encoding="utf-8")
    return path


@pytest.fixture()
def store(services_file: Path) -> JsonConfigStore:
    return JsonConfigStore(services_file)


@pytest.fixture()
def checker() -> FakeChecker:
    return FakeChecker()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()
