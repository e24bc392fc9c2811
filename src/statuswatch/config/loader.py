"""Load .statuswatch.yaml and resolve the services document location."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from statuswatch.config.models import AppConfig

CONFIG_FILENAME = ".statuswatch.yaml"
SERVICES_FILE_ENV = "STATUSWATCH_SERVICES_FILE"

# ${VAR} or ${VAR:-default}
_ENV_REF = re.compile(r"\$\{\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*(?::-(?P<default>[^}]*))?\}")


def expand_env(value: Any) -> Any:
    """Substitute environment references in every string of a parsed YAML tree.

    Unset variables without a default are left as written so the problem shows
    up in validation rather than as an empty string.
    """
    if isinstance(value, str):
        return _ENV_REF.sub(_lookup, value)
    if isinstance(value, list):
        return [expand_env(v) for v in value]
    if isinstance(value, dict):
        return {k: expand_env(v) for k, v in value.items()}
    return value


def _lookup(match: re.Match[str]) -> str:
    default = match.group("default")
    resolved = os.environ.get(match.group("name"))
    if resolved is not None:
        return resolved
    return default if default is not None else match.group(0)


def find_config_file(start: Path | None = None) -> Path | None:
    """Nearest .statuswatch.yaml in *start* (default cwd) or any parent."""
    directory = (start or Path.cwd()).resolve()
    while True:
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if directory.parent == directory:
            return None
        directory = directory.parent


def apply_env_overrides(config: AppConfig) -> AppConfig:
    """STATUSWATCH_SERVICES_FILE wins over whatever the YAML file says."""
    override = os.environ.get(SERVICES_FILE_ENV)
    if not override:
        return config
    return config.model_copy(update={"services_file": override})


def load_config(path: Path | None = None) -> AppConfig:
    """Read, expand and validate the app config, then apply env overrides.

    Raises FileNotFoundError when no config file exists and ValueError when
    it does not validate. Callers fall back to ``AppConfig()`` on either.
    """
    config_path = path or find_config_file()
    if config_path is None or not config_path.is_file():
        raise FileNotFoundError(f"No {CONFIG_FILENAME} found; pass a path or create one")
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    try:
        config = AppConfig.model_validate(expand_env(raw))
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc
    return apply_env_overrides(config)
