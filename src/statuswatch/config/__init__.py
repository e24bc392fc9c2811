"""StatusWatch configuration system."""

from statuswatch.config.loader import find_config_file, load_config
from statuswatch.config.models import (
    AppConfig,
    ServiceCreate,
    ServiceDefinition,
    ServiceDocument,
    Settings,
    slugify,
)
from statuswatch.config.store import JsonConfigStore, StoreErrorKind, StoreResult

__all__ = [
    "AppConfig",
    "JsonConfigStore",
    "ServiceCreate",
    "ServiceDefinition",
    "ServiceDocument",
    "Settings",
    "StoreErrorKind",
    "StoreResult",
    "find_config_file",
    "load_config",
    "slugify",
]
