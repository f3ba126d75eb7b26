"""Registry of external tools, the entry point of the moretools API."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from .applications import (
    ApplicationIndex,
    ExecutableFinder,
    ProvidedDescriptorStore,
    XdgApplicationIndex,
    find_executable,
)
from .desktop_entry import DesktopEntry
from .errors import InvalidIdentifierError
from .events import EventBus, ServiceRegistered
from .layout_store import UserLayoutStore
from .menu import MenuBuilder
from .service import ServiceRecord, resolve_metadata_field

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .config import MoreToolsConfig

__all__ = ["ServiceLocatingMode", "ServiceRegistry"]

LOGGER = logging.getLogger(__name__)


class ServiceLocatingMode(Enum):
    """How a registered service is determined to be installed."""

    # an installed desktop file with the same name exists
    DEFAULT = "default"
    # the program named by TryExec/Exec of the bundled descriptor is on the search path
    BY_PROVIDED_EXEC_LINE = "by_provided_exec_line"


class ServiceRegistry:
    """Resolves tool identifiers to :class:`ServiceRecord` instances.

    ``unique_id`` names both the default subdirectory searched for bundled
    descriptors (``<data dir>/moretools/<unique_id>/``) and the user layout
    namespace of the menu builders created by this registry.
    """

    def __init__(
        self,
        unique_id: str,
        *,
        data_dirs: Sequence[Path | str] | None = None,
        application_index: ApplicationIndex | None = None,
        provided_store: ProvidedDescriptorStore | None = None,
        executable_finder: ExecutableFinder | None = None,
        layout_store: UserLayoutStore | None = None,
        event_bus: EventBus | None = None,
        locale: str | None = None,
    ) -> None:
        if not unique_id or not unique_id.strip():
            raise InvalidIdentifierError("Registry unique_id must not be empty")
        self._unique_id = unique_id.strip()
        self._application_index = application_index or XdgApplicationIndex(data_dirs, locale=locale)
        self._provided_store = provided_store or ProvidedDescriptorStore(data_dirs, locale=locale)
        self._executable_finder = executable_finder or find_executable
        self._layout_store = layout_store if layout_store is not None else UserLayoutStore()
        self._event_bus = event_bus if event_bus is not None else EventBus()
        self._services: dict[str, ServiceRecord] = {}
        self._builders: dict[str, MenuBuilder] = {}

    @classmethod
    def from_config(cls, unique_id: str, config: MoreToolsConfig, **kwargs) -> ServiceRegistry:
        """Create a registry wired to the paths and locale of ``config``."""

        kwargs.setdefault("data_dirs", config.data_dirs)
        kwargs.setdefault("layout_store", UserLayoutStore(config.layout_path))
        kwargs.setdefault("locale", config.locale)
        return cls(unique_id, **kwargs)

    @property
    def unique_id(self) -> str:
        return self._unique_id

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def layout_store(self) -> UserLayoutStore:
        return self._layout_store

    def register(
        self,
        desktop_entry_name: str,
        provided_subdir: str = "",
        locating_mode: ServiceLocatingMode = ServiceLocatingMode.DEFAULT,
        *,
        provided_dir: Path | str | None = None,
    ) -> ServiceRecord | None:
        """Locate ``desktop_entry_name`` and store its record.

        ``provided_subdir`` overrides the unique id when searching bundled
        descriptors; ``provided_dir`` points at a directory that holds them
        directly. Returns ``None`` when neither an installed nor a bundled
        descriptor exists.

        Raises:
            InvalidIdentifierError: ``desktop_entry_name`` is empty.
            PackagingDefectError: the bundled descriptor is malformed. The
                previously registered record, if any, is kept.
        """

        name = (desktop_entry_name or "").strip()
        if not name:
            raise InvalidIdentifierError("desktop_entry_name must not be empty")

        subdir = provided_subdir or self._unique_id
        provided_path = self._locate_provided(name, subdir, provided_dir)
        provided_entry: DesktopEntry | None = None
        icon_path: Path | None = None
        if provided_path is not None:
            provided_entry = self._provided_store.load(provided_path)
            icon_path = self._provided_store.icon_path(provided_path, provided_entry)

        installed_entry: DesktopEntry | None = None
        executable: str | None = None
        if locating_mode is ServiceLocatingMode.BY_PROVIDED_EXEC_LINE:
            program = provided_entry.program() if provided_entry is not None else ""
            if not program:
                LOGGER.warning("No exec line available to locate %s in %s", name, provided_path or subdir)
            executable = self._executable_finder(program) if program else None
            installed = executable is not None
        else:
            installed_entry = self._application_index.find(name)
            installed = installed_entry is not None

        replaced = name in self._services
        if installed_entry is None and provided_entry is None:
            self._services.pop(name, None)
            LOGGER.info("Service %s is neither installed nor provided in %s", name, subdir)
            return None

        record = ServiceRecord(
            desktop_entry_name=name,
            installed=installed,
            installed_entry=installed_entry,
            provided_entry=provided_entry,
            provided_subdir=subdir,
            provided_icon_path=icon_path,
            executable_path=executable,
        )
        self._services[name] = record
        LOGGER.debug("Registered service %s (installed=%s, mode=%s)", name, installed, locating_mode.value)
        self._event_bus.publish(
            ServiceRegistered(
                unique_id=self._unique_id,
                desktop_entry_name=name,
                installed=installed,
                replaced=replaced,
            )
        )
        return record

    def get(self, desktop_entry_name: str) -> ServiceRecord | None:
        return self._services.get(desktop_entry_name)

    def services(self) -> list[ServiceRecord]:
        return list(self._services.values())

    def resolve_metadata_field(self, record: ServiceRecord, field_name: str) -> str:
        return resolve_metadata_field(record, field_name)

    def menu_builder(self, user_config_postfix: str = "") -> MenuBuilder:
        """Return the builder for ``user_config_postfix``, creating it on first use."""

        builder = self._builders.get(user_config_postfix)
        if builder is None:
            builder = MenuBuilder(
                self._unique_id,
                user_config_postfix,
                layout_store=self._layout_store,
                event_bus=self._event_bus,
            )
            self._builders[user_config_postfix] = builder
        return builder

    def _locate_provided(self, name: str, subdir: str, provided_dir: Path | str | None) -> Path | None:
        if provided_dir is not None:
            candidate = Path(provided_dir) / f"{name}.desktop"
            return candidate if candidate.is_file() else None
        return self._provided_store.locate(subdir, name)
