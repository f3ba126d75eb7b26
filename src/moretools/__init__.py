"""Build user-configurable menus of external tools that may not be installed yet."""

from .errors import InvalidIdentifierError, MoreToolsError, PackagingDefectError
from .events import EventBus, ServiceRegistered, UserLayoutChanged
from .layout_store import UserLayoutStore
from .menu import (
    ConfigureDialogVisibility,
    MenuBuilder,
    MenuEntry,
    MenuItem,
    MenuSection,
    MenuStructure,
    Placement,
)
from .registry import ServiceLocatingMode, ServiceRegistry
from .service import ServiceRecord, resolve_metadata_field

__version__ = "0.1.0"

__all__ = [
    "ConfigureDialogVisibility",
    "EventBus",
    "InvalidIdentifierError",
    "MenuBuilder",
    "MenuEntry",
    "MenuItem",
    "MenuSection",
    "MenuStructure",
    "MoreToolsError",
    "PackagingDefectError",
    "Placement",
    "ServiceLocatingMode",
    "ServiceRecord",
    "ServiceRegistered",
    "ServiceRegistry",
    "UserLayoutChanged",
    "UserLayoutStore",
    "resolve_metadata_field",
]
