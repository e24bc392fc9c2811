"""Config Store: durable service document behind a narrow load/save contract.

Neither ``load`` nor ``save`` raises. Callers branch on ``StoreResult.error``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from statuswatch.config.models import ServiceDocument, Settings

logger = logging.getLogger(__name__)


def fallback_document() -> ServiceDocument:
    """Empty service set with the hardcoded default thresholds."""
    return ServiceDocument(services=[], settings=Settings(timeout_threshold=5000, warning_threshold=2000))


class StoreErrorKind(str, Enum):
    MISSING = "missing"
    UNREADABLE = "unreadable"
    INVALID = "invalid"
    WRITE = "write"


@dataclass
class StoreResult:
    """Outcome of a store operation. ``document`` is always usable."""

    document: ServiceDocument = field(default_factory=fallback_document)
    error: StoreErrorKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@runtime_checkable
class ConfigStore(Protocol):
    """Protocol for service document stores."""

    def load(self) -> StoreResult: ...
    def save(self, document: ServiceDocument) -> StoreResult: ...


class JsonConfigStore:
    """Service document kept as a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> StoreResult:
        if not self.path.exists():
            return StoreResult(error=StoreErrorKind.MISSING, message=f"{self.path} does not exist")
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            return StoreResult(error=StoreErrorKind.UNREADABLE, message=f"Cannot read {self.path}: {exc}")
        if not isinstance(raw, dict):
            return StoreResult(error=StoreErrorKind.INVALID, message=f"{self.path} must contain a JSON object")
        try:
            document = ServiceDocument.model_validate(raw)
        except ValidationError as exc:
            return StoreResult(error=StoreErrorKind.INVALID, message=f"Invalid service document {self.path}: {exc}")
        return StoreResult(document=document)

    def save(self, document: ServiceDocument) -> StoreResult:
        """Write via a temp file in the same directory, then replace the target."""
        payload = json.dumps(document.to_dict(), indent=2) + "\n"
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent, prefix=".services-", delete=False
            ) as fh:
                tmp_name = fh.name
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            logger.error("Failed to write %s: %s", self.path, exc)
            return StoreResult(document=document, error=StoreErrorKind.WRITE, message=str(exc))
        return StoreResult(document=document)
