"""Data models for probe outcomes and check results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ServiceState(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    DOWN = "down"


class OutcomeKind(str, Enum):
    RESPONSE = "response"
    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection_failed"


@dataclass(frozen=True)
class ProbeOutcome:
    """What a single GET produced. ``status_code`` is set only for responses."""

    kind: OutcomeKind
    elapsed_ms: float = 0.0
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.RESPONSE and self.status_code is not None and 200 <= self.status_code < 300


@dataclass(frozen=True)
class CheckResult:
    """Latest classified health of one service."""

    id: str
    name: str
    status: ServiceState
    response_time: float
    last_checked: datetime
    message: Optional[str] = None
    type: str = "internal"
    category: str = "general"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "responseTime": self.response_time,
            "lastChecked": self.last_checked.isoformat(),
            "message": self.message,
            "type": self.type,
            "category": self.category,
        }
