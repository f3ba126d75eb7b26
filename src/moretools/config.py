"""Runtime configuration with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from .applications import default_data_dirs
from .layout_store import DEFAULT_LAYOUT_PATH

__all__ = ["MoreToolsConfig", "load_config", "system_locale"]

LOGGER = logging.getLogger(__name__)
_PATH_ENV_OVERRIDES: Mapping[str, str] = {
    "MORETOOLS_LAYOUT_PATH": "layout_path",
    "MORETOOLS_LOG_DIR": "log_dir",
}
_STR_ENV_OVERRIDES: Mapping[str, str] = {
    "MORETOOLS_LOCALE": "locale",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "MORETOOLS_DEBUG_LOGGING": "debug_logging",
}
_DATA_DIRS_ENV = "MORETOOLS_DATA_DIRS"
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_LOCALE_ENV_ORDER: tuple[str, ...] = ("LC_ALL", "LC_MESSAGES", "LANG")


def system_locale() -> str | None:
    """Return the messages locale of the environment, ignoring ``C``/``POSIX``."""

    for name in _LOCALE_ENV_ORDER:
        value = os.environ.get(name, "").strip()
        if value:
            return None if value in ("C", "POSIX") or value.startswith("C.") else value
    return None


@dataclass(slots=True)
class MoreToolsConfig:
    """Paths and switches used when wiring a registry."""

    data_dirs: list[Path] = field(default_factory=default_data_dirs)
    layout_path: Path = DEFAULT_LAYOUT_PATH
    locale: str | None = field(default_factory=system_locale)
    debug_logging: bool = False
    log_dir: Path | None = None


def load_config(overrides: Mapping[str, Any] | None = None) -> MoreToolsConfig:
    """Build a config from defaults, then ``overrides``, then the environment."""

    config = MoreToolsConfig()
    if overrides:
        config = _apply_overrides(config, overrides, source="CLI")
    return _apply_env_overrides(config)


def _apply_overrides(config: MoreToolsConfig, overrides: Mapping[str, Any], *, source: str) -> MoreToolsConfig:
    allowed = {entry.name for entry in fields(MoreToolsConfig)}
    filtered: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in allowed or value is None:
            continue
        if key == "data_dirs":
            value = [Path(entry).expanduser() for entry in value]
        elif key in ("layout_path", "log_dir"):
            value = Path(value).expanduser()
        filtered[key] = value
    if filtered:
        LOGGER.debug("Applying %s config overrides: %s", source, sorted(filtered))
        config = replace(config, **filtered)
    return config


def _apply_env_overrides(config: MoreToolsConfig) -> MoreToolsConfig:
    overrides: Dict[str, Any] = {}
    data_dirs = os.environ.get(_DATA_DIRS_ENV)
    if data_dirs:
        overrides["data_dirs"] = [entry for entry in data_dirs.split(os.pathsep) if entry]
    for env_name, field_name in _PATH_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            overrides[field_name] = value
    for env_name, field_name in _STR_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None:
            overrides[field_name] = value or None
    for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None:
            overrides[field_name] = value.strip().lower() in _TRUE_VALUES
    if overrides:
        config = _apply_overrides(config, overrides, source="environment")
    return config
