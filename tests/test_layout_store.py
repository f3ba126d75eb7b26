"""Tests for the persisted user layout store."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from moretools.layout_store import UserLayoutStore


def test_missing_file_loads_empty(tmp_path: Path) -> None:
    store = UserLayoutStore(tmp_path / "layout.json")

    assert store.namespaces() == []
    assert store.placements("app") == {}
    assert not store.path.exists()


def test_set_placement_round_trips_through_disk(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "layout.json"
    store = UserLayoutStore(path)

    store.set_placement("dolphin", "filelight", "more")
    store.set_placement("dolphin:statusbar", "kdf", "main")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == {
        "version": 1,
        "layouts": {"dolphin": {"filelight": "more"}, "dolphin:statusbar": {"kdf": "main"}},
    }
    reloaded = UserLayoutStore(path)
    assert reloaded.namespaces() == ["dolphin", "dolphin:statusbar"]
    assert reloaded.placements("dolphin") == {"filelight": "more"}
    assert not path.with_suffix(".tmp").exists()


def test_placements_returns_a_copy(tmp_path: Path) -> None:
    store = UserLayoutStore(tmp_path / "layout.json")
    store.set_placement("app", "kate", "main")

    snapshot = store.placements("app")
    snapshot["kate"] = "more"

    assert store.placements("app") == {"kate": "main"}


def test_remove_placement_and_clear(tmp_path: Path) -> None:
    store = UserLayoutStore(tmp_path / "layout.json")
    store.set_placement("app", "kate", "main")
    store.set_placement("app", "kwrite", "more")
    store.set_placement("other", "gitk", "more")

    assert store.remove_placement("app", "kate") is True
    assert store.remove_placement("app", "kate") is False
    assert store.placements("app") == {"kwrite": "more"}

    store.clear("app")

    assert store.namespaces() == ["other"]
    assert UserLayoutStore(store.path).placements("other") == {"gitk": "more"}


def test_reload_picks_up_external_changes(tmp_path: Path) -> None:
    path = tmp_path / "layout.json"
    store = UserLayoutStore(path)
    assert store.placements("app") == {}

    path.write_text(json.dumps({"version": 1, "layouts": {"app": {"kate": "more"}}}), encoding="utf-8")

    assert store.placements("app") == {}
    store.reload()
    assert store.placements("app") == {"kate": "more"}


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2, 3]", '"text"'],
)
def test_invalid_files_load_empty(tmp_path: Path, caplog: pytest.LogCaptureFixture, content: str) -> None:
    path = tmp_path / "layout.json"
    path.write_text(content, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="moretools.layout_store"):
        store = UserLayoutStore(path)
        assert store.namespaces() == []

    assert any("Layout file" in record.getMessage() for record in caplog.records)


def test_malformed_entries_are_dropped(tmp_path: Path) -> None:
    path = tmp_path / "layout.json"
    payload = {
        "version": 1,
        "layouts": {
            "app": {"kate": "main", "broken": 3, "nested": {"x": 1}},
            "bad-namespace": ["kate"],
        },
    }
    path.write_text(json.dumps(payload), encoding="utf-8")

    store = UserLayoutStore(path)

    assert store.namespaces() == ["app"]
    assert store.placements("app") == {"kate": "main"}


def test_writing_after_invalid_file_replaces_it(tmp_path: Path) -> None:
    path = tmp_path / "layout.json"
    path.write_text("garbage", encoding="utf-8")
    store = UserLayoutStore(path)

    store.set_placement("app", "kate", "more")

    assert json.loads(path.read_text(encoding="utf-8"))["layouts"] == {"app": {"kate": "more"}}


def test_invalid_utf8_loads_empty(tmp_path: Path) -> None:
    path = tmp_path / "layout.json"
    path.write_bytes(b'{"version": 1, "layouts": {"app": {"kate": "\xff"}}}')

    store = UserLayoutStore(path)

    assert store.placements("app") == {}


def test_failed_write_leaves_snapshot_and_no_tmp_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "layout.json"
    store = UserLayoutStore(path)
    store.set_placement("app", "kate", "main")

    def _refuse(self: Path, target: Path) -> Path:
        raise PermissionError("read-only")

    monkeypatch.setattr(Path, "replace", _refuse)

    with pytest.raises(PermissionError):
        store.set_placement("app", "kate", "more")
    with pytest.raises(PermissionError):
        store.clear("app")

    assert store.placements("app") == {"kate": "main"}
    assert not path.with_suffix(".tmp").exists()
    monkeypatch.undo()
    assert UserLayoutStore(path).placements("app") == {"kate": "main"}
