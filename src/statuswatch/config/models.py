"""Pydantic models for StatusWatch configuration and service definitions."""

from __future__ import annotations

import re
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    PositiveInt,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_HTTP_URL = TypeAdapter(HttpUrl)


def slugify(name: str) -> str:
    """Derive a service id from a display name ("My API v2" -> "my-api-v2")."""
    return _SLUG_PATTERN.sub("-", name.lower()).strip("-")


class _CamelModel(BaseModel):
    """Models persisted or served as JSON use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ServiceDefinition(_CamelModel):
    """A single monitored HTTP endpoint."""

    id: str = ""
    name: str
    endpoint: str
    type: str = "internal"
    category: str = "general"
    poll_interval: PositiveInt | None = None
    critical_service: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ServiceCreate(_CamelModel):
    """Request body for adding a service. Only name and endpoint are required."""

    id: str | None = None
    name: str
    endpoint: str
    type: str = "internal"
    category: str = "general"
    poll_interval: PositiveInt | None = None
    critical_service: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def _id_is_slug(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if value and slugify(value) != value:
            raise ValueError(f"id '{value}' is not a valid slug (try '{slugify(value)}')")
        return value or None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("endpoint")
    @classmethod
    def _endpoint_is_url(cls, value: str) -> str:
        value = value.strip()
        try:
            url = _HTTP_URL.validate_python(value)
        except ValidationError:
            raise ValueError(f"invalid endpoint URL '{value}'") from None
        # empty labels ("a..b") survive URL parsing
        if any(not label for label in (url.host or "").rstrip(".").split(".")):
            raise ValueError(f"invalid endpoint URL '{value}'")
        return value

    def service_id(self) -> str:
        return (self.id or "").strip() or slugify(self.name)


class Settings(_CamelModel):
    """Global thresholds and poll interval fallbacks.

    Thresholds are in milliseconds, intervals in seconds. ``warning_threshold``
    is expected to be below ``timeout_threshold``; otherwise no response can
    ever classify as a warning.
    """

    timeout_threshold: PositiveInt = 5000
    warning_threshold: PositiveInt = 2000
    default_poll_interval: PositiveInt = 30
    critical_poll_interval: PositiveInt | None = None
    normal_poll_interval: PositiveInt | None = None

    @property
    def thresholds_ordered(self) -> bool:
        return self.warning_threshold < self.timeout_threshold

    def interval_for(self, definition: ServiceDefinition) -> int:
        """Effective poll interval in seconds for *definition*."""
        if definition.poll_interval is not None:
            return definition.poll_interval
        if definition.critical_service and self.critical_poll_interval is not None:
            return self.critical_poll_interval
        if not definition.critical_service and self.normal_poll_interval is not None:
            return self.normal_poll_interval
        return self.default_poll_interval

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ServiceDocument(_CamelModel):
    """The persisted service list: ``{"services": [...], "settings": {...}}``."""

    services: list[ServiceDefinition] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)

    @model_validator(mode="after")
    def _assign_ids(self) -> ServiceDocument:
        seen: set[str] = set()
        for service in self.services:
            if not service.id:
                service.id = slugify(service.name)
            if not service.id:
                raise ValueError(f"Cannot derive an id from service name {service.name!r}")
            if service.id in seen:
                raise ValueError(f"Duplicate service id: {service.id}")
            seen.add(service.id)
        return self

    def get(self, service_id: str) -> ServiceDefinition | None:
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "services": [s.to_dict() for s in self.services],
            "settings": self.settings.to_dict(),
        }


class ServerConfig(BaseModel):
    """Bind address for ``statuswatch serve``."""

    host: str = "0.0.0.0"
    port: int = 3000


class AppConfig(BaseModel):
    """Root configuration model for .statuswatch.yaml."""

    name: str = "StatusWatch"
    version: str = "0.1.0"
    services_file: str = "config/services.json"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    server: ServerConfig = Field(default_factory=ServerConfig)
