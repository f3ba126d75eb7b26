"""Persistence of user-chosen menu item placements."""

from __future__ import annotations

import contextlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = ["UserLayoutStore", "DEFAULT_LAYOUT_PATH"]

LOGGER = logging.getLogger(__name__)
_CONFIG_DIR = Path.home() / ".moretools"
DEFAULT_LAYOUT_PATH = _CONFIG_DIR / "layout.json"
_LAYOUT_VERSION = 1


class UserLayoutStore:
    """JSON-backed mapping of ``namespace -> {item_id: section}``.

    Values are stored as given; interpreting them (and ignoring invalid ones)
    is the job of the menu builder. Unreadable files load as empty layouts.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else DEFAULT_LAYOUT_PATH
        self._layouts: Dict[str, Dict[str, str]] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def namespaces(self) -> list[str]:
        return sorted(self._load())

    def placements(self, namespace: str) -> dict[str, str]:
        """Return a copy of the overrides stored for ``namespace``."""

        return dict(self._load().get(namespace, {}))

    def set_placement(self, namespace: str, item_id: str, section: str) -> None:
        layouts = self._copy()
        layouts.setdefault(namespace, {})[item_id] = section
        self._commit(layouts)

    def remove_placement(self, namespace: str, item_id: str) -> bool:
        layouts = self._copy()
        entries = layouts.get(namespace)
        if not entries or item_id not in entries:
            return False
        del entries[item_id]
        if not entries:
            del layouts[namespace]
        self._commit(layouts)
        return True

    def clear(self, namespace: str) -> None:
        layouts = self._copy()
        if layouts.pop(namespace, None) is not None:
            self._commit(layouts)

    def reload(self) -> None:
        """Drop the in-memory snapshot so the next read goes to disk."""

        self._layouts = None

    def _load(self) -> Dict[str, Dict[str, str]]:
        if self._layouts is None:
            self._layouts = self._read_payload()
        return self._layouts

    def _read_payload(self) -> Dict[str, Dict[str, str]]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            # ValueError covers both JSONDecodeError and UnicodeDecodeError
            LOGGER.warning("Layout file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, Mapping):
            LOGGER.warning("Layout file %s does not contain a JSON object", self._path)
            return {}
        if payload.get("version") != _LAYOUT_VERSION:
            LOGGER.debug("Layout file %s has version %r", self._path, payload.get("version"))
        return _normalize_layouts(payload.get("layouts"))

    def _copy(self) -> Dict[str, Dict[str, str]]:
        return {namespace: dict(entries) for namespace, entries in self._load().items()}

    def _commit(self, layouts: Dict[str, Dict[str, str]]) -> None:
        """Write ``layouts`` to disk, then adopt it as the in-memory snapshot."""

        body = json.dumps({"version": _LAYOUT_VERSION, "layouts": layouts}, indent=2, sort_keys=True)
        tmp_path = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(body, encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise
        self._layouts = layouts
        LOGGER.debug("Layout saved to %s", self._path)


def _normalize_layouts(raw: Any) -> Dict[str, Dict[str, str]]:
    layouts: Dict[str, Dict[str, str]] = {}
    if not isinstance(raw, Mapping):
        return layouts
    for namespace, entries in raw.items():
        if not isinstance(namespace, str) or not isinstance(entries, Mapping):
            LOGGER.warning("Skipping malformed layout namespace %r", namespace)
            continue
        layouts[namespace] = {
            str(item_id): str(section) for item_id, section in entries.items() if isinstance(section, str)
        }
    return layouts
