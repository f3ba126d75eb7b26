"""Ready-made groupings of well known tools.

Applications that need, say, a "disk usage" menu can register the tools of a
grouping instead of shipping their own descriptors. The descriptors live in
the ``preset_desktopfiles`` directory of this package.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .registry import ServiceLocatingMode, ServiceRegistry
from .service import ServiceRecord

__all__ = ["PresetTool", "PRESET_DESKTOPFILES_DIR", "GROUPINGS", "grouping_names", "register_services_by_grouping_names"]

LOGGER = logging.getLogger(__name__)
PRESET_DESKTOPFILES_DIR = Path(__file__).with_name("preset_desktopfiles")


@dataclass(slots=True, frozen=True)
class PresetTool:
    desktop_entry_name: str
    homepage: str
    locating_mode: ServiceLocatingMode = ServiceLocatingMode.DEFAULT


_TOOLS: dict[str, PresetTool] = {
    tool.desktop_entry_name: tool
    for tool in (
        PresetTool("angrysearch", "https://github.com/DoTheEvo/ANGRYsearch"),
        PresetTool("baobab", "https://wiki.gnome.org/Apps/DiskUsageAnalyzer"),
        PresetTool("fontmatrix", "https://github.com/fontmatrix/fontmatrix"),
        PresetTool("git-cola", "https://git-cola.github.io/"),
        PresetTool("gitg", "https://wiki.gnome.org/Apps/Gitg"),
        # gitk ships no desktop file of its own
        PresetTool("gitk", "https://git-scm.com/docs/gitk", ServiceLocatingMode.BY_PROVIDED_EXEC_LINE),
        PresetTool("gnome-search-tool", "https://help.gnome.org/users/gnome-search-tool/"),
        PresetTool("gparted", "https://gparted.org/"),
        PresetTool("org.kde.cuttlefish", "https://apps.kde.org/cuttlefish/"),
        PresetTool("org.kde.filelight", "https://apps.kde.org/filelight/"),
        PresetTool("org.kde.kdf", "https://apps.kde.org/kdf/"),
        PresetTool("org.kde.kfind", "https://apps.kde.org/kfind/"),
        PresetTool("org.kde.kfontview", "https://apps.kde.org/kfontview/"),
        PresetTool("org.kde.kmousetool", "https://apps.kde.org/kmousetool/"),
        PresetTool("org.kde.partitionmanager", "https://apps.kde.org/partitionmanager/"),
        PresetTool("org.kde.spectacle", "https://apps.kde.org/spectacle/"),
        PresetTool("qdirstat", "https://github.com/shundhammer/qdirstat"),
        PresetTool("qgit", "https://github.com/tibirna/qgit"),
        PresetTool("shutter", "https://shutter-project.org/"),
    )
}

GROUPINGS: dict[str, tuple[str, ...]] = {
    "disk-usage": ("org.kde.kdf", "org.kde.filelight", "baobab", "qdirstat"),
    "disk-partitions": ("gparted", "org.kde.partitionmanager"),
    "files-find": ("org.kde.kfind", "angrysearch", "gnome-search-tool"),
    "font-tools": ("org.kde.kfontview", "fontmatrix"),
    "git-clients-for-folder": ("git-cola", "gitk", "qgit", "gitg"),
    "icon-browser": ("org.kde.cuttlefish",),
    "mouse-tools": ("org.kde.kmousetool",),
    "screenshot-take": ("org.kde.spectacle", "shutter"),
}


def grouping_names() -> list[str]:
    return sorted(GROUPINGS)


def register_services_by_grouping_names(registry: ServiceRegistry, names: Iterable[str]) -> list[ServiceRecord]:
    """Register the tools of each grouping in ``names`` and return their records.

    A tool listed by several groupings is registered and returned once.
    Unknown grouping names are skipped with a warning.
    """

    records: list[ServiceRecord] = []
    seen: set[str] = set()
    for grouping in names:
        members = GROUPINGS.get(grouping)
        if members is None:
            LOGGER.warning("Unknown preset grouping %r (known: %s)", grouping, ", ".join(grouping_names()))
            continue
        for desktop_entry_name in members:
            if desktop_entry_name in seen:
                continue
            seen.add(desktop_entry_name)
            tool = _TOOLS[desktop_entry_name]
            record = registry.register(
                desktop_entry_name,
                locating_mode=tool.locating_mode,
                provided_dir=PRESET_DESKTOPFILES_DIR,
            )
            if record is None:
                continue
            record.set_homepage_url(tool.homepage)
            records.append(record)
    return records
