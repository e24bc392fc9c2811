"""Poll scheduler: interval groups, recurring timers, concurrent rounds."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from statuswatch.config.models import ServiceDefinition, Settings
from statuswatch.events.emitter import Publisher, StatusEvent
from statuswatch.monitor.cache import StatusCache
from statuswatch.monitor.models import CheckResult
from statuswatch.monitor.probe import check_all, check_service

logger = logging.getLogger(__name__)

Checker = Callable[[ServiceDefinition, Settings], Awaitable[CheckResult]]
Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class PollGroup:
    """Services sharing one poll interval, plus the timer task driving them."""

    interval: int
    services: List[ServiceDefinition] = field(default_factory=list)
    timer: Optional[asyncio.Task[None]] = None

    @property
    def service_ids(self) -> List[str]:
        return [s.id for s in self.services]

    @property
    def armed(self) -> bool:
        return self.timer is not None and not self.timer.done()


class PollScheduler:
    """Runs poll rounds per interval group and feeds the status cache.

    Each group gets one immediate round on ``start`` and then one round per
    interval tick. Ticks do not wait for the previous round, so a round slower
    than its interval overlaps the next one; the later write wins in the cache.
    ``stop`` cancels timers only. Rounds already in flight finish and still
    write, but only for services whose current definition is the one the round
    checked; deleted, re-added or re-pointed services keep the newer result.
    """

    def __init__(
        self,
        cache: StatusCache,
        publisher: Publisher | None = None,
        checker: Checker = check_service,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.cache = cache
        self.publisher = publisher
        self._checker = checker
        self._sleep = sleep
        self._settings = Settings()
        self._groups: Dict[int, PollGroup] = {}
        self._active: Dict[str, ServiceDefinition] = {}
        self._rounds: set[asyncio.Task[List[CheckResult]]] = set()

    @property
    def groups(self) -> Dict[int, PollGroup]:
        return dict(self._groups)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def running(self) -> bool:
        return any(g.armed for g in self._groups.values())

    @property
    def rounds_in_flight(self) -> int:
        return len(self._rounds)

    def build(self, definitions: Iterable[ServiceDefinition], settings: Settings) -> Dict[int, PollGroup]:
        """Partition *definitions* by effective interval, replacing any prior groups."""
        self._cancel_timers()
        groups: Dict[int, PollGroup] = {}
        for definition in definitions:
            interval = settings.interval_for(definition)
            group = groups.setdefault(interval, PollGroup(interval=interval))
            group.services.append(definition)
        self._settings = settings
        self._groups = groups
        self._active = {s.id: s for g in groups.values() for s in g.services}
        return self.groups

    def start(self) -> None:
        """Fire one immediate round per group, then arm its recurring timer."""
        for group in self._groups.values():
            if group.armed:
                continue
            self._launch_round(group)
            group.timer = asyncio.create_task(
                self._tick(group),
                name=f"poll-timer-{group.interval}s",
            )
            logger.info("Polling %d service(s) every %ds", len(group.services), group.interval)

    def stop(self) -> None:
        """Cancel every group timer. In-flight rounds are left to finish."""
        cancelled = self._cancel_timers()
        if cancelled:
            logger.info("Cancelled %d poll timer(s)", cancelled)

    def rebuild(self, definitions: Iterable[ServiceDefinition], settings: Settings) -> None:
        """Stop, clear the cache, regroup and restart."""
        self.stop()
        self.cache.clear()
        self.build(definitions, settings)
        self.start()

    async def drain(self) -> None:
        """Wait for every in-flight round to settle."""
        while self._rounds:
            await asyncio.gather(*list(self._rounds), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel timers, wait for them to unwind, then drain in-flight rounds."""
        timers = [g.timer for g in self._groups.values() if g.timer is not None]
        self.stop()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        await self.drain()
        logger.info("Poll scheduler stopped")

    async def run_round(self, group: PollGroup) -> List[CheckResult]:
        """Check every member concurrently, merge into the cache, publish a snapshot."""
        services = list(group.services)
        results = await check_all(services, self._settings, checker=self._checker)
        written = 0
        for definition, result in zip(services, results):
            if self._active.get(definition.id) == definition:
                self.cache.put(result)
                written += 1
        if written < len(results):
            logger.debug("Discarded %d superseded result(s)", len(results) - written)
        if written and self.publisher is not None:
            await self.publisher.publish(StatusEvent(services=self.cache.snapshot()))
        return results

    async def _tick(self, group: PollGroup) -> None:
        while True:
            await self._sleep(group.interval)
            self._launch_round(group)

    def _launch_round(self, group: PollGroup) -> None:
        task = asyncio.create_task(self.run_round(group), name=f"poll-round-{group.interval}s")
        self._rounds.add(task)
        task.add_done_callback(self._round_done)

    def _round_done(self, task: asyncio.Task[List[CheckResult]]) -> None:
        self._rounds.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Poll round failed", exc_info=task.exception())

    def _cancel_timers(self) -> int:
        cancelled = 0
        for group in self._groups.values():
            if group.timer is not None:
                if not group.timer.done():
                    group.timer.cancel()
                    cancelled += 1
                group.timer = None
        return cancelled
