"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping

import pytest

from moretools.applications import ProvidedDescriptorStore
from moretools.desktop_entry import DesktopEntry
from moretools.events import EventBus
from moretools.layout_store import UserLayoutStore
from moretools.registry import ServiceRegistry

DesktopFileWriter = Callable[..., Path]


def _render(keys: Mapping[str, str], group: str = "Desktop Entry") -> str:
    lines = [f"[{group}]"]
    lines.extend(f"{key}={value}" for key, value in keys.items())
    return "\n".join(lines) + "\n"


@pytest.fixture
def write_desktop_file() -> DesktopFileWriter:
    """Return a helper writing ``<directory>/<name>.desktop`` from keyword keys."""

    def _write(directory: Path, name: str, /, **keys: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.desktop"
        payload = {"Type": "Application", **{key.replace("__", "-"): value for key, value in keys.items()}}
        path.write_text(_render(payload), encoding="utf-8")
        return path

    return _write


class FakeApplicationIndex:
    """In-memory installed-application registry."""

    def __init__(self, entries: Mapping[str, DesktopEntry] | None = None) -> None:
        self.entries = dict(entries or {})
        self.lookups: list[str] = []

    def install(self, desktop_entry_name: str, **fields: str) -> DesktopEntry:
        fields.setdefault("name", desktop_entry_name.title())
        entry = DesktopEntry(**fields)
        self.entries[desktop_entry_name] = entry
        return entry

    def find(self, desktop_entry_name: str) -> DesktopEntry | None:
        self.lookups.append(desktop_entry_name)
        return self.entries.get(desktop_entry_name)


class FakeExecutableFinder:
    def __init__(self, available: set[str] | None = None) -> None:
        self.available = set(available or ())
        self.queries: list[str] = []

    def __call__(self, program: str) -> str | None:
        self.queries.append(program)
        if program in self.available:
            return f"/usr/bin/{program}"
        return None


@pytest.fixture
def app_index() -> FakeApplicationIndex:
    return FakeApplicationIndex()


@pytest.fixture
def executables() -> FakeExecutableFinder:
    return FakeExecutableFinder()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "share"
    path.mkdir()
    return path


@pytest.fixture
def layout_store(tmp_path: Path) -> UserLayoutStore:
    return UserLayoutStore(tmp_path / "config" / "layout.json")


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def make_registry(
    data_dir: Path,
    app_index: FakeApplicationIndex,
    executables: FakeExecutableFinder,
    layout_store: UserLayoutStore,
    event_bus: EventBus,
) -> Callable[..., ServiceRegistry]:
    """Return a factory for registries wired to the fake collaborators."""

    def _make(unique_id: str = "testapp/menu", **kwargs) -> ServiceRegistry:
        kwargs.setdefault("application_index", app_index)
        kwargs.setdefault("provided_store", ProvidedDescriptorStore([data_dir]))
        kwargs.setdefault("executable_finder", executables)
        kwargs.setdefault("layout_store", layout_store)
        kwargs.setdefault("event_bus", event_bus)
        return ServiceRegistry(unique_id, **kwargs)

    return _make


@pytest.fixture
def provided_dir(data_dir: Path) -> Path:
    """Bundled descriptor directory of the default ``testapp/menu`` registry."""

    return data_dir / "moretools" / "testapp" / "menu"
