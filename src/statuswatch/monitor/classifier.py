"""Health classification: outcome + latency + thresholds -> status."""

from __future__ import annotations

from typing import Optional

from statuswatch.config.models import Settings
from statuswatch.monitor.models import OutcomeKind, ProbeOutcome, ServiceState


def classify(
    outcome: ProbeOutcome,
    elapsed_ms: float,
    settings: Settings,
) -> tuple[ServiceState, Optional[str]]:
    """Map a probe outcome to ``(status, message)``.

    A response that arrives at or past ``timeout_threshold`` counts as down
    even when its status code is fine.
    """
    if outcome.kind is OutcomeKind.CONNECTION_FAILED:
        return ServiceState.DOWN, "Connection Failed"
    if outcome.kind is OutcomeKind.TIMEOUT:
        return ServiceState.DOWN, "Timeout"
    if elapsed_ms >= settings.timeout_threshold:
        return ServiceState.DOWN, "Timeout"
    if not outcome.ok:
        return ServiceState.DOWN, f"HTTP {outcome.status_code}"
    if elapsed_ms > settings.warning_threshold:
        return ServiceState.WARNING, "High Latency"
    return ServiceState.HEALTHY, None
