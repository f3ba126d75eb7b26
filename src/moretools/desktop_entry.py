"""Freedesktop desktop entry parsing and the process-wide descriptor cache."""

from __future__ import annotations

import configparser
import logging
import re
import shlex
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from .errors import PackagingDefectError

__all__ = [
    "DesktopEntry",
    "parse_desktop_entry",
    "load_desktop_entry",
    "clear_descriptor_cache",
    "cached_descriptor_count",
    "split_exec_line",
    "expand_exec_line",
    "locale_variants",
]

LOGGER = logging.getLogger(__name__)
_GROUP = "Desktop Entry"
_HOMEPAGE_KEYS: tuple[str, ...] = ("X-MoreTools-Homepage", "URL")
_TRUE_VALUES = {"true", "1"}
_FILE_CODES = {"%f", "%u"}
_LIST_CODES = {"%F", "%U"}
_DROPPED_CODES = {"%i", "%c", "%k", "%d", "%D", "%n", "%N", "%v", "%m"}
_LOCALE_RE = re.compile(r"^(?P<lang>[A-Za-z]+)(?:_(?P<country>[A-Za-z]+))?(?:\.[^@]*)?(?:@(?P<modifier>.+))?$")

_ESCAPE_RE = re.compile(r"\\(.)")
_ESCAPES = {"s": " ", "n": "\n", "t": "\t", "r": "\r", "\\": "\\"}

_CACHE: dict[tuple[str, str, str], "DesktopEntry"] = {}
_CACHE_LOCK = threading.Lock()


@dataclass(slots=True, frozen=True)
class DesktopEntry:
    """Metadata read from the ``[Desktop Entry]`` group of a ``.desktop`` file."""

    name: str
    generic_name: str = ""
    comment: str = ""
    icon: str = ""
    exec: str = ""
    try_exec: str = ""
    homepage: str = ""
    entry_type: str = ""
    no_display: bool = False
    hidden: bool = False
    path: Path | None = None
    extra: Mapping[str, str] = field(default_factory=dict, hash=False)

    @property
    def is_application(self) -> bool:
        return self.entry_type in ("", "Application")

    def value(self, field_name: str) -> str:
        """Return the string value of ``field_name`` or an empty string."""

        if field_name in ("no_display", "hidden", "path", "extra"):
            return ""
        value = getattr(self, field_name, "")
        return value if isinstance(value, str) else ""

    def program(self) -> str:
        """Return the executable named by ``TryExec`` or the first ``Exec`` token."""

        if self.try_exec:
            return self.try_exec
        argv = split_exec_line(self.exec)
        return argv[0] if argv else ""


def locale_variants(locale: str | None) -> list[str]:
    """Return lookup suffixes for ``locale`` in desktop entry matching order."""

    if not locale:
        return []
    match = _LOCALE_RE.match(locale.strip())
    if match is None:
        return []
    lang = match.group("lang")
    country = match.group("country")
    modifier = match.group("modifier")
    variants: list[str] = []
    if country and modifier:
        variants.append(f"{lang}_{country}@{modifier}")
    if country:
        variants.append(f"{lang}_{country}")
    if modifier:
        variants.append(f"{lang}@{modifier}")
    variants.append(lang)
    return variants


def parse_desktop_entry(path: Path | str, *, locale: str | None = None) -> DesktopEntry:
    """Parse ``path`` into a :class:`DesktopEntry`.

    Raises :class:`PackagingDefectError` when the file cannot be read, is not
    valid key file syntax, lacks the ``[Desktop Entry]`` group or lacks ``Name``.
    """

    target = Path(path)
    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        comment_prefixes=("#",),
        inline_comment_prefixes=None,
        delimiters=("=",),
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        text = target.read_text(encoding="utf-8")
        parser.read_string(text, source=str(target))
    except (OSError, UnicodeDecodeError) as exc:
        raise PackagingDefectError(target, f"unreadable: {exc}") from exc
    except configparser.Error as exc:
        raise PackagingDefectError(target, f"invalid syntax: {exc}") from exc

    if not parser.has_section(_GROUP):
        raise PackagingDefectError(target, f"missing [{_GROUP}] group")
    group = parser[_GROUP]
    suffixes = locale_variants(locale)

    def localized(key: str) -> str:
        for suffix in suffixes:
            value = _string(group, f"{key}[{suffix}]")
            if value:
                return value
        return _string(group, key)

    name = localized("Name")
    if not name:
        raise PackagingDefectError(target, "missing Name key")

    homepage = ""
    for key in _HOMEPAGE_KEYS:
        homepage = _string(group, key)
        if homepage:
            break

    known = {"Name", "GenericName", "Comment", "Icon", "Exec", "TryExec", "Type", "NoDisplay", "Hidden", *_HOMEPAGE_KEYS}
    extra = {key: _unescape(value) for key, value in group.items() if key.split("[", 1)[0] not in known}
    return DesktopEntry(
        name=name,
        generic_name=localized("GenericName"),
        comment=localized("Comment"),
        icon=_string(group, "Icon"),
        exec=_string(group, "Exec"),
        try_exec=_string(group, "TryExec"),
        homepage=homepage,
        entry_type=_string(group, "Type"),
        no_display=group.get("NoDisplay", "").strip().lower() in _TRUE_VALUES,
        hidden=group.get("Hidden", "").strip().lower() in _TRUE_VALUES,
        path=target,
        extra=extra,
    )


def _string(group: configparser.SectionProxy, key: str) -> str:
    return _unescape(group.get(key, "").strip())


def _unescape(value: str) -> str:
    """Resolve the \\s, \\n, \\t, \\r and \\\\ escapes of key file string values."""

    if "\\" not in value:
        return value
    return _ESCAPE_RE.sub(lambda match: _ESCAPES.get(match.group(1), match.group(0)), value)


def load_desktop_entry(path: Path | str, *, provider: str, locale: str | None = None) -> DesktopEntry:
    """Return the parsed entry at ``path``, memoized per ``provider`` for the process lifetime."""

    target = Path(path)
    try:
        stat = target.stat()
    except OSError as exc:
        raise PackagingDefectError(target, f"unreadable: {exc}") from exc
    # a rewritten file gets a new key, older entries are never evicted
    key = (provider, f"{target}@{stat.st_mtime_ns}:{stat.st_size}", locale or "")
    with _CACHE_LOCK:
        cached = _CACHE.get(key)
    if cached is not None:
        return cached
    entry = parse_desktop_entry(target, locale=locale)
    with _CACHE_LOCK:
        entry = _CACHE.setdefault(key, entry)
    LOGGER.debug("Loaded %s descriptor %s", provider, path)
    return entry


def clear_descriptor_cache() -> None:
    with _CACHE_LOCK:
        _CACHE.clear()


def cached_descriptor_count() -> int:
    with _CACHE_LOCK:
        return len(_CACHE)


def split_exec_line(exec_line: str) -> list[str]:
    """Split an ``Exec`` value into argv tokens, keeping field codes intact."""

    if not exec_line.strip():
        return []
    try:
        return shlex.split(exec_line)
    except ValueError:
        LOGGER.warning("Unbalanced quoting in exec line %r", exec_line)
        return exec_line.split()


def expand_exec_line(exec_line: str, urls: Sequence[str] = ()) -> list[str]:
    """Return argv for ``exec_line`` with desktop entry field codes expanded.

    ``%f``/``%u`` take the first url, ``%F``/``%U`` take all of them, ``%%``
    becomes a literal percent sign and the remaining codes are dropped.
    """

    argv: list[str] = []
    for token in split_exec_line(exec_line):
        if token in _FILE_CODES:
            if urls:
                argv.append(urls[0])
            continue
        if token in _LIST_CODES:
            argv.extend(urls)
            continue
        if token in _DROPPED_CODES:
            continue
        cleaned = _strip_field_codes(token)
        if cleaned:
            argv.append(cleaned)
    return argv


def _strip_field_codes(token: str) -> str:
    chars: list[str] = []
    index = 0
    while index < len(token):
        char = token[index]
        if char == "%" and index + 1 < len(token):
            code = token[index + 1]
            if code == "%":
                chars.append("%")
            index += 2
            continue
        chars.append(char)
        index += 1
    return "".join(chars)
