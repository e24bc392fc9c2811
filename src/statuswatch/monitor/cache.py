"""In-memory status cache: service id -> latest CheckResult."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Dict, List, Optional

from statuswatch.monitor.models import CheckResult, ServiceState


class StatusCache:
    """Latest result per service.

    Written only from the scheduler's round-completion path on the event loop;
    every write replaces one whole entry, so readers need no lock. Readers get
    copies, never the live mapping.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, CheckResult] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, service_id: object) -> bool:
        return service_id in self._entries

    def put(self, result: CheckResult) -> None:
        self._entries[result.id] = result

    def get(self, service_id: str) -> Optional[CheckResult]:
        return self._entries.get(service_id)

    def ids(self) -> set[str]:
        return set(self._entries)

    def snapshot(self) -> List[CheckResult]:
        return list(self._entries.values())

    def discard(self, service_id: str) -> None:
        self._entries.pop(service_id, None)

    def retain(self, service_ids: Iterable[str]) -> None:
        """Drop every entry whose id is not in *service_ids*."""
        keep = set(service_ids)
        for key in [k for k in self._entries if k not in keep]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def summary(self) -> dict[str, int]:
        results = self.snapshot()
        return {
            "total": len(results),
            "healthy": sum(1 for r in results if r.status is ServiceState.HEALTHY),
            "warning": sum(1 for r in results if r.status is ServiceState.WARNING),
            "down": sum(1 for r in results if r.status is ServiceState.DOWN),
        }
