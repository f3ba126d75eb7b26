"""The registered service record and its metadata fallback rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .desktop_entry import DesktopEntry, expand_exec_line

__all__ = ["ServiceRecord", "resolve_metadata_field", "NAME_LIKE_FIELDS", "TEMPLATE_PLACEHOLDERS"]

NAME_LIKE_FIELDS: frozenset[str] = frozenset({"name", "generic_name"})

# placeholder -> metadata field, ordered from most to least specific
TEMPLATE_PLACEHOLDERS: tuple[tuple[str, str], ...] = (
    ("$GenericName", "generic_name"),
    ("$Name", "name"),
    ("$DesktopEntryName", "desktop_entry_name"),
)


@dataclass(slots=True, eq=False)
class ServiceRecord:
    """An external tool known to a registry, installed or not.

    Records are owned by the :class:`~moretools.registry.ServiceRegistry` that
    created them. ``installed_entry`` is only populated when the tool was found
    in the installed-application registry; ``provided_entry`` holds the
    descriptor the application ships for the case the tool is missing.
    """

    desktop_entry_name: str
    installed: bool
    installed_entry: DesktopEntry | None = None
    provided_entry: DesktopEntry | None = None
    provided_subdir: str = ""
    provided_icon_path: Path | None = None
    executable_path: str | None = None
    _homepage_override: str | None = field(default=None, repr=False)
    _exec_override: str | None = field(default=None, repr=False)

    @property
    def is_valid(self) -> bool:
        return self.installed_entry is not None or self.provided_entry is not None

    @property
    def homepage_url(self) -> str:
        """Return the homepage override, else a descriptor-provided homepage."""

        if self._homepage_override:
            return self._homepage_override
        return resolve_metadata_field(self, "homepage")

    def set_homepage_url(self, url: str | None) -> None:
        self._homepage_override = url or None

    @property
    def exec_override(self) -> str | None:
        return self._exec_override

    def set_exec(self, exec_line: str | None) -> None:
        """Override the launch command; only applies while the tool is installed."""

        self._exec_override = exec_line or None

    def metadata(self, field_name: str) -> str:
        return resolve_metadata_field(self, field_name)

    @property
    def display_name(self) -> str:
        return resolve_metadata_field(self, "name")

    def icon_name(self) -> str:
        """Return the installed icon, else the bundled icon file, else the bundled icon name."""

        if self.installed and self.installed_entry is not None and self.installed_entry.icon:
            return self.installed_entry.icon
        if self.provided_icon_path is not None:
            return str(self.provided_icon_path)
        if self.provided_entry is not None:
            return self.provided_entry.icon
        return ""

    def format_string(self, template: str) -> str:
        """Replace ``$GenericName``, ``$Name`` and ``$DesktopEntryName`` in ``template``.

        An empty value falls through to the next, less specific placeholder;
        ``$DesktopEntryName`` is always available.
        """

        result = template
        for index, (placeholder, _field_name) in enumerate(TEMPLATE_PLACEHOLDERS):
            if placeholder not in result:
                continue
            value = ""
            for _, candidate in TEMPLATE_PLACEHOLDERS[index:]:
                value = self._template_value(candidate)
                if value:
                    break
            result = result.replace(placeholder, value)
        return result

    def launch_argv(self, urls: Sequence[str] = ()) -> list[str]:
        """Return the argv used to start the tool, or an empty list if not installed."""

        if not self.installed:
            return []
        exec_line = self._exec_override
        if not exec_line and self.installed_entry is not None:
            exec_line = self.installed_entry.exec
        if not exec_line and self.provided_entry is not None:
            exec_line = self.provided_entry.exec
        if not exec_line:
            exec_line = self.executable_path or self.desktop_entry_name
        return expand_exec_line(exec_line, urls)

    def _template_value(self, field_name: str) -> str:
        if field_name == "desktop_entry_name":
            return self.desktop_entry_name
        return _descriptor_value(self, field_name)


def resolve_metadata_field(record: ServiceRecord, field_name: str) -> str:
    """Look up ``field_name`` on ``record`` following the descriptor fallback order.

    The installed descriptor wins when the tool is installed and the value is
    non-empty, then the bundled descriptor. Name-like fields fall back to the
    bare desktop entry name, everything else to an empty string.
    """

    value = _descriptor_value(record, field_name)
    if value:
        return value
    if field_name in NAME_LIKE_FIELDS:
        return record.desktop_entry_name
    return ""


def _descriptor_value(record: ServiceRecord, field_name: str) -> str:
    if record.installed and record.installed_entry is not None:
        value = record.installed_entry.value(field_name)
        if value:
            return value
    if record.provided_entry is not None:
        return record.provided_entry.value(field_name)
    return ""
