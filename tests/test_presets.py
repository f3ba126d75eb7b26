"""Tests for the bundled preset groupings."""

from __future__ import annotations

import logging

import pytest

from moretools.desktop_entry import parse_desktop_entry
from moretools.presets import (
    GROUPINGS,
    PRESET_DESKTOPFILES_DIR,
    grouping_names,
    register_services_by_grouping_names,
)


def test_every_grouping_member_has_a_valid_descriptor() -> None:
    members = {name for names in GROUPINGS.values() for name in names}

    for name in sorted(members):
        entry = parse_desktop_entry(PRESET_DESKTOPFILES_DIR / f"{name}.desktop")
        assert entry.name
        assert entry.is_application


def test_grouping_names_are_sorted() -> None:
    names = grouping_names()

    assert names == sorted(GROUPINGS)
    assert "disk-usage" in names
    assert "git-clients-for-folder" in names


def test_register_disk_usage_grouping(make_registry, app_index) -> None:
    app_index.install("org.kde.filelight", name="Filelight", generic_name="Disk Usage Statistics")
    registry = make_registry()

    records = register_services_by_grouping_names(registry, ["disk-usage"])

    assert [record.desktop_entry_name for record in records] == ["org.kde.kdf", "org.kde.filelight", "baobab", "qdirstat"]
    by_name = {record.desktop_entry_name: record for record in records}
    assert by_name["org.kde.filelight"].installed is True
    assert by_name["org.kde.kdf"].installed is False
    assert by_name["org.kde.kdf"].display_name == "KDiskFree"
    assert by_name["baobab"].homepage_url.startswith("https://")
    assert registry.get("qdirstat") is by_name["qdirstat"]


def test_gitk_is_located_by_its_exec_line(make_registry, app_index, executables) -> None:
    executables.available.add("gitk")
    registry = make_registry()

    records = register_services_by_grouping_names(registry, ["git-clients-for-folder"])

    gitk = next(record for record in records if record.desktop_entry_name == "gitk")
    assert gitk.installed is True
    assert gitk.executable_path == "/usr/bin/gitk"
    assert "gitk" not in app_index.lookups
    assert gitk.homepage_url == "https://git-scm.com/docs/gitk"


def test_duplicates_and_unknown_groupings(make_registry, caplog: pytest.LogCaptureFixture) -> None:
    registry = make_registry()

    with caplog.at_level(logging.WARNING, logger="moretools.presets"):
        records = register_services_by_grouping_names(registry, ["icon-browser", "no-such-grouping", "icon-browser"])

    assert [record.desktop_entry_name for record in records] == ["org.kde.cuttlefish"]
    assert any("no-such-grouping" in record.getMessage() for record in caplog.records)


def test_preset_items_feed_a_menu(make_registry) -> None:
    registry = make_registry()
    builder = registry.menu_builder()

    for record in register_services_by_grouping_names(registry, ["screenshot-take"]):
        builder.add_service(record)

    structure = builder.build()
    assert structure.ids(structure.not_installed[0].placement) == ["org.kde.spectacle", "shutter"]
    assert all(entry.homepage_url for entry in structure.not_installed)
