"""Tests for tui.py — text rendering helpers and start-up wiring."""
import json

import pytest

from round_controller import parse_args
from snapshot_store import JsonSnapshotStore
from tui import TILE_KEYS, build_adapter, render_dice, render_tiles


def _build(tmp_path, argv, settings=None):
    settings_path = tmp_path / "settings.json"
    if settings is not None:
        settings_path.write_text(json.dumps(settings))
    store = JsonSnapshotStore(tmp_path / "scores.json")
    return build_adapter(parse_args(argv), store=store, settings_path=settings_path)


class TestRendering:

    def test_empty_cup_before_roll(self):
        assert "?" in render_dice(())

    def test_dice_show_total(self):
        text = render_dice((3, 4))
        assert text.splitlines()[-1] == "Total: 7"
        assert text.count("┌───────┐") == 2

    def test_tiles_mark_shut_and_selected(self):
        tiles = [
            {"value": 1, "open": False, "selected": False, "playable": False, "hint": False},
            {"value": 2, "open": True, "selected": True, "playable": True, "hint": False},
            {"value": 3, "open": True, "selected": False, "playable": False, "hint": True},
        ]
        top, mid, bottom = render_tiles(tiles).splitlines()
        assert top.count("┌──┐") == 3
        assert "░░" in mid
        assert "[reverse bold] 2[/reverse bold]" in mid
        assert "[bold cyan] 3[/bold cyan]" in mid

    def test_tile_keys_cover_twelve_tiles(self):
        assert sorted(TILE_KEYS.values()) == list(range(1, 13))


class TestBuildAdapter:

    def test_flags_override_saved_settings(self, tmp_path):
        adapter = _build(tmp_path, ["--players", "Ann", "Bob", "--max-tile", "9"],
                         settings={"max_tile": 10, "one_die_rule": "never"})
        options = adapter.controller.options
        assert options.max_tile == 9
        assert options.one_die_rule.value == "never"
        assert [p.name for p in adapter.controller.players] == ["Ann", "Bob"]

    def test_restores_saved_players_without_flag(self, tmp_path):
        first = _build(tmp_path, ["--players", "Ann", "Bob"])
        first.controller.start_round()
        second = _build(tmp_path, [])
        assert [p.name for p in second.controller.players] == ["Ann", "Bob"]

    def test_auto_enables_handoff_acknowledgement(self, tmp_path):
        adapter = _build(tmp_path, ["--auto", "random", "--speed", "fast"])
        assert adapter.autoplayer is not None
        assert adapter.autoplayer.acknowledge_handoffs
        assert adapter.autoplayer.speed_name == "fast"

    def test_invalid_target_raises(self, tmp_path):
        with pytest.raises(ValueError):
            _build(tmp_path, ["--target", "0"])
