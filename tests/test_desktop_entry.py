"""Tests for desktop entry parsing and exec line handling."""

from __future__ import annotations

from pathlib import Path

import pytest

from moretools import desktop_entry
from moretools.desktop_entry import (
    expand_exec_line,
    load_desktop_entry,
    locale_variants,
    parse_desktop_entry,
    split_exec_line,
)
from moretools.errors import PackagingDefectError


def test_parse_reads_standard_keys(tmp_path: Path, write_desktop_file) -> None:
    path = write_desktop_file(
        tmp_path,
        "gitk",
        Name="Gitk",
        GenericName="Git repository browser",
        Icon="gitk",
        Exec="gitk --all",
        X__MoreTools__Homepage="https://git-scm.com",
        Keywords="git;history;",
    )

    entry = parse_desktop_entry(path)

    assert entry.name == "Gitk"
    assert entry.generic_name == "Git repository browser"
    assert entry.icon == "gitk"
    assert entry.exec == "gitk --all"
    assert entry.homepage == "https://git-scm.com"
    assert entry.is_application is True
    assert entry.path == path
    assert entry.extra == {"Keywords": "git;history;"}


def test_parse_falls_back_to_url_for_homepage(tmp_path: Path, write_desktop_file) -> None:
    path = write_desktop_file(tmp_path, "tool", Name="Tool", URL="https://example.org")

    assert parse_desktop_entry(path).homepage == "https://example.org"


def test_parse_prefers_most_specific_locale(tmp_path: Path, write_desktop_file) -> None:
    path = write_desktop_file(
        tmp_path,
        "dolphin",
        Name="Dolphin",
        GenericName="File Manager",
        **{"Name[de]": "Dolphin DE", "GenericName[de_AT]": "Dateiverwaltung AT", "GenericName[de]": "Dateiverwaltung"},
    )

    entry = parse_desktop_entry(path, locale="de_AT.UTF-8")
    fallback = parse_desktop_entry(path, locale="fr_FR")

    assert entry.name == "Dolphin DE"
    assert entry.generic_name == "Dateiverwaltung AT"
    assert fallback.generic_name == "File Manager"


def test_locale_variants_order() -> None:
    assert locale_variants("sr_RS.UTF-8@latin") == ["sr_RS@latin", "sr_RS", "sr@latin", "sr"]
    assert locale_variants("de") == ["de"]
    assert locale_variants(None) == []


def test_parse_flags_and_type(tmp_path: Path, write_desktop_file) -> None:
    path = write_desktop_file(tmp_path, "link", Name="Link", Type="Link", NoDisplay="true", Hidden="false")

    entry = parse_desktop_entry(path)

    assert entry.is_application is False
    assert entry.no_display is True
    assert entry.hidden is False


def test_parse_missing_group_is_packaging_defect(tmp_path: Path) -> None:
    path = tmp_path / "broken.desktop"
    path.write_text("[Something Else]\nName=Broken\n", encoding="utf-8")

    with pytest.raises(PackagingDefectError) as excinfo:
        parse_desktop_entry(path)

    assert excinfo.value.path == path


def test_parse_missing_name_is_packaging_defect(tmp_path: Path) -> None:
    path = tmp_path / "nameless.desktop"
    path.write_text("[Desktop Entry]\nExec=nameless\n", encoding="utf-8")

    with pytest.raises(PackagingDefectError, match="Name"):
        parse_desktop_entry(path)


def test_parse_garbage_is_packaging_defect(tmp_path: Path) -> None:
    path = tmp_path / "garbage.desktop"
    path.write_text("this is not a key file\n", encoding="utf-8")

    with pytest.raises(PackagingDefectError):
        parse_desktop_entry(path)


def test_load_memoizes_per_provider(tmp_path: Path, write_desktop_file, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_desktop_file(tmp_path, "kate", Name="Kate")
    calls: list[Path] = []
    original = desktop_entry.parse_desktop_entry

    def _counting(target, *, locale=None):
        calls.append(Path(target))
        return original(target, locale=locale)

    monkeypatch.setattr(desktop_entry, "parse_desktop_entry", _counting)

    first = load_desktop_entry(path, provider="unit")
    second = load_desktop_entry(path, provider="unit")
    other = load_desktop_entry(path, provider="unit-other")

    assert first is second
    assert other == first
    assert len(calls) == 2


def test_load_missing_file_is_packaging_defect(tmp_path: Path) -> None:
    with pytest.raises(PackagingDefectError):
        load_desktop_entry(tmp_path / "missing.desktop", provider="unit")


def test_program_prefers_try_exec() -> None:
    entry = desktop_entry.DesktopEntry(name="Gitk", exec="wish /usr/bin/gitk", try_exec="gitk")
    assert entry.program() == "gitk"
    assert desktop_entry.DesktopEntry(name="Kate", exec="kate -b %U").program() == "kate"


def test_split_exec_line_handles_quotes() -> None:
    assert split_exec_line('"/opt/My Tool/bin/tool" --flag %f') == ["/opt/My Tool/bin/tool", "--flag", "%f"]
    assert split_exec_line("   ") == []


def test_expand_exec_line_field_codes() -> None:
    urls = ["/tmp/a.txt", "/tmp/b.txt"]

    assert expand_exec_line("kate -b %U", urls) == ["kate", "-b", "/tmp/a.txt", "/tmp/b.txt"]
    assert expand_exec_line("filelight %u", urls) == ["filelight", "/tmp/a.txt"]
    assert expand_exec_line("filelight %u") == ["filelight"]
    assert expand_exec_line("app %i %c --caption=%c") == ["app", "--caption="]
    assert expand_exec_line("printf 100%%") == ["printf", "100%"]


def test_string_escapes_are_resolved(tmp_path: Path) -> None:
    path = tmp_path / "escaped.desktop"
    path.write_text(
        "[Desktop Entry]\n"
        "Type=Application\n"
        "Name=Disk\\sUsage\n"
        "Comment=First line\\nSecond\\tline \\\\ done\n"
        'Exec="/opt/My Tool/tool" --flag\n',
        encoding="utf-8",
    )

    entry = parse_desktop_entry(path)

    assert entry.name == "Disk Usage"
    assert entry.comment == "First line\nSecond\tline \\ done"
    assert entry.program() == "/opt/My Tool/tool"


def test_entries_are_hashable(tmp_path: Path, write_desktop_file) -> None:
    path = write_desktop_file(tmp_path, "kate", Name="Kate", Keywords="editor;")
    entry = parse_desktop_entry(path)

    assert hash(entry) == hash(parse_desktop_entry(path))
    assert {entry, parse_desktop_entry(path)} == {entry}
