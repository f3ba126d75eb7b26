"""Lookups against installed applications and application-bundled descriptors."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Iterable, Protocol, Sequence

from .desktop_entry import DesktopEntry, load_desktop_entry
from .errors import PackagingDefectError

__all__ = [
    "ApplicationIndex",
    "XdgApplicationIndex",
    "ProvidedDescriptorStore",
    "ExecutableFinder",
    "default_data_dirs",
    "find_executable",
    "PROVIDED_DIR_NAME",
]

LOGGER = logging.getLogger(__name__)
PROVIDED_DIR_NAME = "moretools"
_DEFAULT_XDG_DATA_DIRS = "/usr/local/share:/usr/share"
_ICON_SUFFIXES: tuple[str, ...] = (".svg", ".png")

ExecutableFinder = Callable[[str], "str | None"]


class ApplicationIndex(Protocol):
    """Registry of applications installed on the current system."""

    def find(self, desktop_entry_name: str) -> DesktopEntry | None:
        """Return the installed entry for ``desktop_entry_name`` or ``None``."""
        ...


def default_data_dirs() -> list[Path]:
    """Return ``XDG_DATA_HOME`` followed by ``XDG_DATA_DIRS`` without duplicates."""

    data_home = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or _DEFAULT_XDG_DATA_DIRS
    return _dedupe(Path(entry).expanduser() for entry in [data_home, *data_dirs.split(os.pathsep)] if entry)


def find_executable(program: str) -> str | None:
    """Return the resolved path of ``program`` if it is executable, else ``None``."""

    if not program:
        return None
    candidate = Path(program).expanduser()
    if candidate.is_absolute():
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)
        return None
    return shutil.which(program)


class XdgApplicationIndex:
    """Finds installed ``<name>.desktop`` files under ``<data dir>/applications``."""

    provider = "installed"

    def __init__(self, data_dirs: Sequence[Path | str] | None = None, *, locale: str | None = None) -> None:
        dirs = default_data_dirs() if data_dirs is None else [Path(entry) for entry in data_dirs]
        self._dirs = _dedupe(dirs)
        self._locale = locale

    @property
    def data_dirs(self) -> tuple[Path, ...]:
        return tuple(self._dirs)

    def find(self, desktop_entry_name: str) -> DesktopEntry | None:
        filename = f"{desktop_entry_name}.desktop"
        for root in self._dirs:
            candidate = root / "applications" / filename
            if not candidate.is_file():
                continue
            try:
                entry = load_desktop_entry(candidate, provider=self.provider, locale=self._locale)
            except PackagingDefectError as exc:
                # broken system files are not the calling application's defect
                LOGGER.warning("Ignoring unreadable installed desktop file %s: %s", candidate, exc)
                continue
            if entry.hidden:
                LOGGER.debug("Installed desktop file %s is marked hidden", candidate)
                return None
            return entry
        return None


class ProvidedDescriptorStore:
    """Descriptors shipped by the application under ``<data dir>/moretools/<subdir>``."""

    provider = "provided"

    def __init__(self, data_dirs: Sequence[Path | str] | None = None, *, locale: str | None = None) -> None:
        dirs = default_data_dirs() if data_dirs is None else [Path(entry) for entry in data_dirs]
        self._dirs = _dedupe(dirs)
        self._locale = locale

    @property
    def data_dirs(self) -> tuple[Path, ...]:
        return tuple(self._dirs)

    def locate(self, subdir: str, desktop_entry_name: str) -> Path | None:
        """Return the first bundled descriptor path for ``desktop_entry_name``."""

        filename = f"{desktop_entry_name}.desktop"
        for root in self._dirs:
            candidate = root / PROVIDED_DIR_NAME / subdir / filename
            if candidate.is_file():
                return candidate
        return None

    def load(self, path: Path) -> DesktopEntry:
        """Parse ``path``; malformed files raise :class:`PackagingDefectError`."""

        return load_desktop_entry(path, provider=self.provider, locale=self._locale)

    def icon_path(self, descriptor_path: Path, entry: DesktopEntry | None = None) -> Path | None:
        """Return an ``.svg``/``.png`` icon next to ``descriptor_path`` if one exists."""

        stems = [descriptor_path.stem]
        if entry is not None and entry.icon and not Path(entry.icon).is_absolute():
            stems.append(entry.icon)
        for stem in stems:
            for suffix in _ICON_SUFFIXES:
                candidate = descriptor_path.with_name(f"{stem}{suffix}")
                if candidate.is_file():
                    return candidate
        return None


def _dedupe(paths: Iterable[Path]) -> list[Path]:
    seen: set[Path] = set()
    ordered: list[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        ordered.append(path)
    return ordered
