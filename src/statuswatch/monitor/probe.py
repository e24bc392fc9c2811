"""Async HTTP probe and per-service check."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from typing import List

import httpx

from statuswatch.config.models import ServiceDefinition, Settings
from statuswatch.monitor.classifier import classify
from statuswatch.monitor.models import CheckResult, OutcomeKind, ProbeOutcome, ServiceState

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 1)


async def probe(url: str, timeout: float) -> ProbeOutcome:
    """GET *url* within *timeout* seconds. Never raises.

    The deadline covers the whole request. On expiry the request is cancelled
    and the client closed, so no connection is left running in the background.
    """
    start = time.monotonic()
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await asyncio.wait_for(client.get(url), timeout=timeout)
            return ProbeOutcome(
                kind=OutcomeKind.RESPONSE,
                elapsed_ms=_elapsed_ms(start),
                status_code=resp.status_code,
            )
    except (TimeoutError, httpx.TimeoutException):
        return ProbeOutcome(kind=OutcomeKind.TIMEOUT, elapsed_ms=_elapsed_ms(start), error="Timeout")
    except Exception as exc:
        # DNS, refused, TLS, malformed URL: nothing usable came back
        return ProbeOutcome(
            kind=OutcomeKind.CONNECTION_FAILED,
            elapsed_ms=_elapsed_ms(start),
            error=str(exc) or exc.__class__.__name__,
        )


async def check_service(definition: ServiceDefinition, settings: Settings) -> CheckResult:
    """Probe one service and classify the outcome."""
    outcome = await probe(definition.endpoint, timeout=settings.timeout_threshold / 1000)
    status, message = classify(outcome, outcome.elapsed_ms, settings)
    return CheckResult(
        id=definition.id,
        name=definition.name,
        status=status,
        response_time=outcome.elapsed_ms,
        last_checked=datetime.now(UTC),
        message=message,
        type=definition.type,
        category=definition.category,
    )


async def check_all(
    definitions: Iterable[ServiceDefinition],
    settings: Settings,
    checker: Callable[[ServiceDefinition, Settings], Awaitable[CheckResult]] = check_service,
) -> List[CheckResult]:
    """Check every definition concurrently and wait for all of them.

    A checker that raises yields a down result for its own service only.
    """
    definitions = list(definitions)
    results = await asyncio.gather(*(checker(d, settings) for d in definitions), return_exceptions=True)
    out: List[CheckResult] = []
    for definition, result in zip(definitions, results):
        if isinstance(result, Exception):
            logger.error("Check for %s raised", definition.id, exc_info=result)
            out.append(_failed_result(definition))
        elif isinstance(result, BaseException):
            raise result
        else:
            out.append(result)
    return out


def _failed_result(definition: ServiceDefinition) -> CheckResult:
    return CheckResult(
        id=definition.id,
        name=definition.name,
        status=ServiceState.DOWN,
        response_time=0.0,
        last_checked=datetime.now(UTC),
        message="Connection Failed",
        type=definition.type,
        category=definition.category,
    )
