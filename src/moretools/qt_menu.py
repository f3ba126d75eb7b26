"""Render a built :class:`~moretools.menu.MenuStructure` into a Qt menu."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from PySide6.QtCore import QProcess, QUrl
from PySide6.QtGui import QAction, QDesktopServices, QIcon
from PySide6.QtWidgets import QMenu

from .menu import MenuEntry, MenuStructure
from .service import ServiceRecord

__all__ = ["populate_menu", "launch_service", "MORE_MENU_TITLE", "NOT_INSTALLED_TITLE", "CONFIGURE_TITLE"]

LOGGER = logging.getLogger(__name__)
MORE_MENU_TITLE = "More"
NOT_INSTALLED_TITLE = "Not installed:"
CONFIGURE_TITLE = "Configure..."
HOMEPAGE_TITLE = "Visit homepage"
NO_INFO_TITLE = "No further information available"

Launcher = Callable[[ServiceRecord], bool]


def launch_service(service: ServiceRecord) -> bool:
    """Start ``service`` detached from the current process."""

    argv = service.launch_argv()
    if not argv:
        LOGGER.warning("Service %s has nothing to launch", service.desktop_entry_name)
        return False
    started = QProcess.startDetached(argv[0], argv[1:])
    # PySide6 returns (ok, pid) for the static overload
    ok = started[0] if isinstance(started, tuple) else bool(started)
    if not ok:
        LOGGER.warning("Failed to launch %s with %s", service.desktop_entry_name, argv)
    return ok


def populate_menu(
    menu: QMenu,
    structure: MenuStructure,
    *,
    on_configure: Callable[[], Any] | None = None,
    launcher: Launcher | None = None,
) -> QMenu | None:
    """Append the items of ``structure`` to ``menu``.

    Main entries go first, then a "More" submenu holding more entries and a
    "Not installed" section, then the "Configure..." entry if requested.

    Returns:
        The "More" submenu, or ``None`` if none was needed.
    """

    start = launcher or launch_service
    for entry in structure.main:
        _add_entry(menu, entry, start)

    more_menu: QMenu | None = None
    if structure.has_more_menu:
        more_menu = menu.addMenu(MORE_MENU_TITLE)
        for entry in structure.more:
            _add_entry(more_menu, entry, start)
        if structure.not_installed:
            more_menu.addSection(NOT_INSTALLED_TITLE)
            for entry in structure.not_installed:
                _add_not_installed_entry(more_menu, entry)

    if structure.show_configure:
        menu.addSeparator()
        configure = menu.addAction(CONFIGURE_TITLE)
        if on_configure is not None:
            configure.triggered.connect(lambda _checked=False: on_configure())
    return more_menu


def _add_entry(menu: QMenu, entry: MenuEntry, launcher: Launcher) -> None:
    item = entry.item
    if item.action is not None:
        if isinstance(item.action, QAction):
            menu.addAction(item.action)
            return
        action = menu.addAction(entry.text)
        if callable(item.action):
            callback = item.action
            action.triggered.connect(lambda _checked=False: callback())
        return

    action = menu.addAction(_icon(entry.icon), entry.text)
    action.setObjectName(entry.item_id)
    service = item.service
    if service is not None:
        action.triggered.connect(lambda _checked=False: launcher(service))


def _add_not_installed_entry(menu: QMenu, entry: MenuEntry) -> None:
    submenu = menu.addMenu(_icon(entry.icon), entry.text)
    submenu.setObjectName(entry.item_id)
    if entry.homepage_url:
        url = QUrl(entry.homepage_url)
        homepage = submenu.addAction(QIcon.fromTheme("internet-services"), HOMEPAGE_TITLE)
        homepage.setToolTip(entry.homepage_url)
        homepage.triggered.connect(lambda _checked=False: QDesktopServices.openUrl(url))
    else:
        placeholder = submenu.addAction(NO_INFO_TITLE)
        placeholder.setEnabled(False)


def _icon(name: str) -> QIcon:
    if not name:
        return QIcon()
    if Path(name).is_absolute():
        return QIcon(name)
    return QIcon.fromTheme(name)
