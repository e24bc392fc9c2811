"""StatusMonitor: wires the config store, scheduler, cache and publisher together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from pydantic import ValidationError

from statuswatch.config.models import ServiceCreate, ServiceDefinition, ServiceDocument, Settings
from statuswatch.config.store import ConfigStore, StoreErrorKind, StoreResult, fallback_document
from statuswatch.events.emitter import Publisher
from statuswatch.monitor.cache import StatusCache
from statuswatch.monitor.models import CheckResult
from statuswatch.monitor.probe import check_service
from statuswatch.monitor.scheduler import Checker, PollScheduler

logger = logging.getLogger(__name__)


class MutationErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"


@dataclass
class MutationResult:
    """Outcome of add/remove. On error nothing was persisted or rebuilt."""

    service: Optional[ServiceDefinition] = None
    error: Optional[MutationErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ReloadResult:
    success: bool
    message: str
    service_count: int = 0


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


class StatusMonitor:
    """Owns the active service set and everything that polls it.

    Constructed once at startup and handed to the API layer. All mutations go
    through the config store first; the scheduler is rebuilt only after the
    store accepted the change. An injected scheduler supplies the cache and
    publisher, so subscribers of ``publisher`` always see its rounds.
    """

    def __init__(
        self,
        store: ConfigStore,
        cache: StatusCache | None = None,
        publisher: Publisher | None = None,
        checker: Checker = check_service,
        scheduler: PollScheduler | None = None,
    ) -> None:
        self.store = store
        if scheduler is None:
            cache = cache if cache is not None else StatusCache()
            scheduler = PollScheduler(cache, publisher if publisher is not None else Publisher(), checker=checker)
        else:
            if cache is not None and cache is not scheduler.cache:
                raise ValueError("cache differs from the scheduler's cache")
            if scheduler.publisher is None:
                scheduler.publisher = publisher if publisher is not None else Publisher()
            elif publisher is not None and publisher is not scheduler.publisher:
                raise ValueError("publisher differs from the scheduler's publisher")
        self.scheduler = scheduler
        self.cache = scheduler.cache
        self.publisher = scheduler.publisher
        self._document = fallback_document()
        self._loaded = False

    @property
    def loaded(self) -> bool:
        """True once the initial load has completed, successfully or not."""
        return self._loaded

    @property
    def definitions(self) -> List[ServiceDefinition]:
        return list(self._document.services)

    @property
    def settings(self) -> Settings:
        return self._document.settings

    def statuses(self) -> List[CheckResult]:
        return self.cache.snapshot()

    def status(self, service_id: str) -> Optional[CheckResult]:
        return self.cache.get(service_id)

    def summary(self) -> dict[str, int]:
        return self.cache.summary()

    async def start(self) -> ReloadResult:
        return self.reload()

    async def shutdown(self) -> None:
        await self.scheduler.shutdown()

    def reload(self) -> ReloadResult:
        """Re-read the store and rebuild. On failure run with the empty fallback."""
        result = self.store.load()
        self._loaded = True
        if not result.ok:
            logger.error("Error loading configuration (%s): %s", result.error.value, result.message)
            self._apply(fallback_document())
            return ReloadResult(success=False, message=result.message)
        self._apply(result.document)
        logger.info("Loaded %d services from configuration", len(result.document.services))
        return ReloadResult(
            success=True,
            message="Configuration reloaded successfully",
            service_count=len(result.document.services),
        )

    def add_service(self, payload: Any) -> MutationResult:
        if not isinstance(payload, dict):
            return MutationResult(error=MutationErrorKind.VALIDATION, message="Request body must be a JSON object")
        if not payload.get("name") or not payload.get("endpoint"):
            return MutationResult(error=MutationErrorKind.VALIDATION, message="Name and endpoint are required")
        try:
            request = ServiceCreate.model_validate(payload)
        except ValidationError as exc:
            return MutationResult(error=MutationErrorKind.VALIDATION, message=_validation_message(exc))

        service_id = request.service_id()
        if not service_id:
            return MutationResult(
                error=MutationErrorKind.VALIDATION,
                message=f"Cannot derive a service id from name '{request.name}'",
            )

        current = self._read_for_update()
        if not current.ok:
            return MutationResult(error=MutationErrorKind.PERSISTENCE, message=current.message)
        document = current.document
        if document.get(service_id) is not None:
            return MutationResult(
                error=MutationErrorKind.VALIDATION,
                message=f"Service with id '{service_id}' already exists",
            )

        definition = ServiceDefinition(
            id=service_id,
            name=request.name,
            endpoint=request.endpoint,
            type=request.type,
            category=request.category,
            poll_interval=request.poll_interval,
            critical_service=request.critical_service,
            metadata=request.metadata,
        )
        if definition.poll_interval is None:
            definition.poll_interval = document.settings.interval_for(definition)

        updated = ServiceDocument(services=[*document.services, definition], settings=document.settings)
        saved = self.store.save(updated)
        if not saved.ok:
            return MutationResult(error=MutationErrorKind.PERSISTENCE, message=f"Failed to save service: {saved.message}")

        self._apply(updated)
        logger.info("Added service %s (%s)", definition.id, definition.endpoint)
        return MutationResult(service=definition)

    def remove_service(self, service_id: str) -> MutationResult:
        service_id = (service_id or "").strip()
        if not service_id:
            return MutationResult(error=MutationErrorKind.VALIDATION, message="Service ID is required")

        current = self._read_for_update()
        if not current.ok:
            return MutationResult(error=MutationErrorKind.PERSISTENCE, message=current.message)
        document = current.document
        removed = document.get(service_id)
        if removed is None:
            return MutationResult(error=MutationErrorKind.NOT_FOUND, message=f"Service '{service_id}' not found")

        updated = ServiceDocument(
            services=[s for s in document.services if s.id != service_id],
            settings=document.settings,
        )
        saved = self.store.save(updated)
        if not saved.ok:
            return MutationResult(error=MutationErrorKind.PERSISTENCE, message=f"Failed to save service: {saved.message}")

        self._apply(updated)
        logger.info("Removed service %s", service_id)
        return MutationResult(service=removed)

    def _read_for_update(self) -> StoreResult:
        """Current persisted document; a missing file starts from the active settings."""
        result = self.store.load()
        if result.error is StoreErrorKind.MISSING:
            return StoreResult(document=ServiceDocument(services=[], settings=self._document.settings))
        return result

    def _apply(self, document: ServiceDocument) -> None:
        if not document.settings.thresholds_ordered:
            logger.warning(
                "warningThreshold (%dms) is not below timeoutThreshold (%dms); no service will report a warning",
                document.settings.warning_threshold,
                document.settings.timeout_threshold,
            )
        self._document = document
        self.scheduler.rebuild(document.services, document.settings)
