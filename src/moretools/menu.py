"""Menu structure assembly for registered services and custom actions.

A :class:`MenuBuilder` collects items and turns them into a
:class:`MenuStructure` with three sections:

- main items, shown directly in the menu,
- "More" items, shown in a submenu,
- "Not installed" items, shown at the end of the "More" submenu.

Where an installed item goes is decided by its default section unless the
user stored an override for the item id. Items of services that are not
installed always end up in the "Not installed" section.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import InvalidIdentifierError
from .events import EventBus, UserLayoutChanged
from .layout_store import UserLayoutStore
from .service import ServiceRecord

__all__ = [
    "MenuSection",
    "Placement",
    "ConfigureDialogVisibility",
    "MenuItem",
    "MenuEntry",
    "MenuStructure",
    "MenuBuilder",
    "DEFAULT_ITEM_TEXT_TEMPLATE",
    "namespace_for",
]

LOGGER = logging.getLogger(__name__)
DEFAULT_ITEM_TEXT_TEMPLATE = "$GenericName"
_ITEM_ID_RE = re.compile(r"^[A-Za-z0-9._-]+$")


class MenuSection(Enum):
    """Section an item is placed in by default."""

    MAIN = "main"
    MORE = "more"


class Placement(Enum):
    """Section an item actually ends up in after a build."""

    MAIN = "main"
    MORE = "more"
    NOT_INSTALLED = "not_installed"


class ConfigureDialogVisibility(Enum):
    """When the "Configure..." entry is part of the built menu."""

    ALWAYS = "always"
    # only when there is at least one not-installed item
    DEFENSIVE = "defensive"


def namespace_for(unique_id: str, user_config_postfix: str = "") -> str:
    """Return the layout store namespace of a builder."""

    return f"{unique_id}:{user_config_postfix}" if user_config_postfix else unique_id


@dataclass(slots=True, eq=False)
class MenuItem:
    """An entry added to a :class:`MenuBuilder`.

    Bound either to a :class:`ServiceRecord` or to a caller-owned action.
    """

    id: str
    default_section: MenuSection = MenuSection.MAIN
    service: ServiceRecord | None = None
    action: Any = None
    initial_text: str = ""

    @property
    def is_installed(self) -> bool:
        if self.service is None:
            return True
        return self.service.installed

    def set_initial_text(self, text: str) -> None:
        self.initial_text = text


@dataclass(slots=True, frozen=True)
class MenuEntry:
    """A placed item inside a built :class:`MenuStructure`."""

    item_id: str
    text: str
    placement: Placement
    item: MenuItem = field(compare=False, repr=False)
    icon: str = ""
    homepage_url: str = ""


@dataclass(slots=True, frozen=True)
class MenuStructure:
    """Result of :meth:`MenuBuilder.build`."""

    main: tuple[MenuEntry, ...] = ()
    more: tuple[MenuEntry, ...] = ()
    not_installed: tuple[MenuEntry, ...] = ()
    show_configure: bool = False

    @property
    def has_more_menu(self) -> bool:
        return bool(self.more or self.not_installed)

    def section(self, placement: Placement) -> tuple[MenuEntry, ...]:
        if placement is Placement.MAIN:
            return self.main
        if placement is Placement.MORE:
            return self.more
        return self.not_installed

    def ids(self, placement: Placement) -> list[str]:
        return [entry.item_id for entry in self.section(placement)]

    def as_text(self) -> str:
        lines = ["|main|:"]
        lines.extend(f"{entry.item_id}." for entry in self.main)
        lines.append("|more|:")
        lines.extend(f"{entry.item_id}." for entry in self.more)
        lines.append("|notinstalled|:")
        lines.extend(f"{entry.item_id}." for entry in self.not_installed)
        if self.show_configure:
            lines.append("|configure|")
        return "\n".join(lines) + "\n"


class MenuBuilder:
    """Collects menu items and builds the sectioned menu structure.

    Ids double as keys of the persisted user layout, so they are kept stable:
    an id stays with its item for the item's lifetime, and an id handed out
    once is not handed out again until :meth:`clear` is called.
    """

    def __init__(
        self,
        unique_id: str,
        user_config_postfix: str = "",
        *,
        layout_store: UserLayoutStore | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._unique_id = unique_id
        self._postfix = user_config_postfix
        self._layout_store = layout_store if layout_store is not None else UserLayoutStore()
        self._event_bus = event_bus
        self._items: list[MenuItem] = []
        self._issued_ids: set[str] = set()
        self._text_template = DEFAULT_ITEM_TEXT_TEMPLATE

    @property
    def namespace(self) -> str:
        return namespace_for(self._unique_id, self._postfix)

    @property
    def layout_store(self) -> UserLayoutStore:
        return self._layout_store

    @property
    def initial_item_text_template(self) -> str:
        return self._text_template

    def set_initial_item_text_template(self, template: str) -> None:
        """Set the text template used by items added after this call."""

        self._text_template = template

    def add_service(self, service: ServiceRecord, default_section: MenuSection = MenuSection.MAIN) -> MenuItem:
        """Add a registered service; its id is derived from the desktop entry name."""

        item = MenuItem(
            id=self._issue_id(service.desktop_entry_name),
            default_section=default_section,
            service=service,
            initial_text=service.format_string(self._text_template),
        )
        self._items.append(item)
        LOGGER.debug("Added service item %s to %s", item.id, self.namespace)
        return item

    def add_action(
        self,
        action: Any,
        item_id: str,
        default_section: MenuSection = MenuSection.MAIN,
        *,
        text: str | None = None,
    ) -> MenuItem:
        """Add a caller-owned action under ``item_id`` (made unique if needed).

        Pick a sensible, untranslated ``item_id``: it is the key under which
        the user's placement choice is stored.
        """

        item = MenuItem(
            id=self._issue_id(item_id),
            default_section=default_section,
            action=action,
            initial_text=text if text is not None else _action_text(action),
        )
        self._items.append(item)
        LOGGER.debug("Added action item %s to %s", item.id, self.namespace)
        return item

    def remove_item(self, item: MenuItem | str) -> MenuItem:
        """Remove ``item`` (or the item with that id). Its id stays retired."""

        target = self.item(item) if isinstance(item, str) else item
        if target is None or target not in self._items:
            raise KeyError(f"Unknown menu item {item!r}")
        self._items.remove(target)
        return target

    def set_item_id(self, item: MenuItem | str, new_id: str) -> str:
        """Pin the id of ``item`` and return the id actually assigned.

        Useful when the same service is added more than once and the generated
        ``-2``/``-3`` suffixes would follow insertion order. ``new_id`` goes
        through the same rules as generated ids: a taken or retired id gets a
        numeric suffix, and the item's previous id stays retired.

        Raises:
            KeyError: ``item`` does not belong to this builder.
            InvalidIdentifierError: ``new_id`` is empty or contains characters
                other than letters, digits, ``.``, ``_`` and ``-``.
        """

        target = self.item(item) if isinstance(item, str) else item
        if target is None or target not in self._items:
            raise KeyError(f"Unknown menu item {item!r}")
        new_id = (new_id or "").strip()
        if new_id == target.id:
            return target.id
        if not _ITEM_ID_RE.match(new_id):
            raise InvalidIdentifierError(f"Invalid menu item id {new_id!r}")
        previous = target.id
        target.id = self._issue_id(new_id)
        LOGGER.debug("Renamed item %s to %s in %s", previous, target.id, self.namespace)
        return target.id

    def clear(self) -> None:
        """Discard all items so the builder can be filled again from scratch."""

        self._items.clear()
        self._issued_ids.clear()

    def items(self) -> list[MenuItem]:
        return list(self._items)

    def item(self, item_id: str) -> MenuItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def user_placements(self) -> dict[str, MenuSection]:
        """Return the valid persisted overrides of this builder's namespace."""

        overrides: dict[str, MenuSection] = {}
        for item_id, raw in self._layout_store.placements(self.namespace).items():
            try:
                overrides[item_id] = MenuSection(raw)
            except ValueError:
                LOGGER.debug("Ignoring invalid placement %r for %s in %s", raw, item_id, self.namespace)
        return overrides

    def set_user_placement(self, item_id: str, section: MenuSection | str) -> None:
        """Persist the user's choice of section for ``item_id``."""

        if self.item(item_id) is None:
            raise KeyError(f"Unknown menu item {item_id!r}")
        resolved = section if isinstance(section, MenuSection) else MenuSection(section)
        self._layout_store.set_placement(self.namespace, item_id, resolved.value)
        self._publish(UserLayoutChanged(namespace=self.namespace, item_id=item_id, section=resolved.value))

    def reset_user_layout(self) -> None:
        """Forget all persisted overrides of this builder's namespace."""

        self._layout_store.clear(self.namespace)
        self._publish(UserLayoutChanged(namespace=self.namespace))

    def effective_placement(self, item: MenuItem, overrides: dict[str, MenuSection] | None = None) -> Placement:
        if not item.is_installed:
            return Placement.NOT_INSTALLED
        section = (overrides or {}).get(item.id, item.default_section)
        return Placement.MAIN if section is MenuSection.MAIN else Placement.MORE

    def build(
        self,
        visibility: ConfigureDialogVisibility = ConfigureDialogVisibility.ALWAYS,
        *,
        merge_with_user_config: bool = True,
    ) -> MenuStructure:
        """Return the menu structure for the current items.

        The result depends only on the item list and the stored overrides, so
        repeated calls without changes produce equal structures.
        """

        overrides = self.user_placements() if merge_with_user_config else {}
        stale = sorted(set(overrides) - {item.id for item in self._items})
        if stale:
            LOGGER.debug("Ignoring overrides for unknown items in %s: %s", self.namespace, stale)

        sections: dict[Placement, list[MenuEntry]] = {placement: [] for placement in Placement}
        for item in self._items:
            placement = self.effective_placement(item, overrides)
            sections[placement].append(_entry_for(item, placement))

        not_installed = tuple(sections[Placement.NOT_INSTALLED])
        if visibility is ConfigureDialogVisibility.ALWAYS:
            show_configure = True
        else:
            show_configure = bool(not_installed)
        return MenuStructure(
            main=tuple(sections[Placement.MAIN]),
            more=tuple(sections[Placement.MORE]),
            not_installed=not_installed,
            show_configure=show_configure,
        )

    def menu_structure_as_string(self, merge_with_user_config: bool = True) -> str:
        """Describe the section membership of all items, one id per line."""

        structure = self.build(ConfigureDialogVisibility.DEFENSIVE, merge_with_user_config=merge_with_user_config)
        return MenuStructure(structure.main, structure.more, structure.not_installed).as_text()

    def _issue_id(self, base: str) -> str:
        base = (base or "").strip()
        if not base:
            raise InvalidIdentifierError("Menu item ids must not be empty")
        candidate = base
        counter = 2
        while candidate in self._issued_ids:
            candidate = f"{base}-{counter}"
            counter += 1
        self._issued_ids.add(candidate)
        return candidate

    def _publish(self, event: UserLayoutChanged) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)


def _entry_for(item: MenuItem, placement: Placement) -> MenuEntry:
    service = item.service
    return MenuEntry(
        item_id=item.id,
        text=item.initial_text or item.id,
        placement=placement,
        item=item,
        icon=service.icon_name() if service is not None else "",
        homepage_url=service.homepage_url if service is not None else "",
    )


def _action_text(action: Any) -> str:
    text = getattr(action, "text", "")
    if callable(text):
        text = text()
    return text if isinstance(text, str) else ""
