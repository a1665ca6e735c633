"""Tests for web.py — action dispatch and query-string options."""

from frontend_adapter import FrontendAdapter
from game_engine import GameOptions, OneDieRule, Rejection, ScoringMode
from round_controller import RoundController
from web import _apply_query_options, _handle_action, app

# ── Helpers ──────────────────────────────────────────────────────────────────


class ScriptedRng:
    def __init__(self, *values):
        self.values = list(values)

    def randint(self, a, b):
        return self.values.pop(0)


def _make_adapter(tmp_path, dice=(), names=("Ann", "Bob")):
    """Create an adapter with a fresh controller and scripted dice."""
    ctrl = RoundController(
        options=GameOptions(max_tile=9, one_die_rule=OneDieRule.NEVER),
        player_names=list(names),
        rng=ScriptedRng(*dice),
    )
    return FrontendAdapter(ctrl, settings_path=tmp_path / "settings.json")


def _started(tmp_path, dice=()):
    adapter = _make_adapter(tmp_path, dice=dice)
    _handle_action(adapter, {"action": "next"})
    return adapter


# ── Turn actions ─────────────────────────────────────────────────────────────

class TestTurnActions:

    def test_next_starts_round(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        outcome = _handle_action(adapter, {"action": "next"})
        assert outcome.ok
        assert adapter.controller.round_number == 1

    def test_roll_two_dice(self, tmp_path):
        adapter = _started(tmp_path, dice=(4, 5))
        outcome = _handle_action(adapter, {"action": "roll", "dice": 2})
        assert outcome.ok
        assert adapter.controller.turn.dice == (4, 5)

    def test_roll_default_count(self, tmp_path):
        adapter = _started(tmp_path, dice=(1, 2))
        assert _handle_action(adapter, {"action": "roll"}).ok
        assert adapter.controller.turn.dice == (1, 2)

    def test_roll_bad_count_ignored(self, tmp_path):
        adapter = _started(tmp_path, dice=(1, 2, 3))
        assert _handle_action(adapter, {"action": "roll", "dice": 3}) is None
        assert not adapter.controller.turn.rolled

    def test_one_die_refused(self, tmp_path):
        adapter = _started(tmp_path, dice=(3,))
        outcome = _handle_action(adapter, {"action": "roll", "dice": 1})
        assert outcome.rejection == Rejection.ONE_DIE_NOT_ELIGIBLE
        assert adapter.status == "One die is not allowed yet"

    def test_toggle_confirm_clear(self, tmp_path):
        adapter = _started(tmp_path, dice=(4, 5))
        _handle_action(adapter, {"action": "roll", "dice": 2})
        _handle_action(adapter, {"action": "toggle", "tile": 4})
        _handle_action(adapter, {"action": "clear"})
        assert adapter.controller.turn.selected == ()
        _handle_action(adapter, {"action": "toggle", "tile": 9})
        assert _handle_action(adapter, {"action": "confirm"}).ok
        assert not adapter.controller.turn.tiles.is_open(9)

    def test_toggle_needs_integer_tile(self, tmp_path):
        adapter = _started(tmp_path, dice=(4, 5))
        _handle_action(adapter, {"action": "roll", "dice": 2})
        assert _handle_action(adapter, {"action": "toggle", "tile": "9"}) is None
        assert _handle_action(adapter, {"action": "toggle", "tile": True}) is None
        assert adapter.controller.turn.selected == ()

    def test_end_turn_hands_off(self, tmp_path):
        adapter = _started(tmp_path)
        assert _handle_action(adapter, {"action": "end_turn"}).ok
        assert adapter.controller.pending_handoff is not None

    def test_reset(self, tmp_path):
        adapter = _started(tmp_path)
        _handle_action(adapter, {"action": "reset"})
        assert adapter.controller.round_number == 0

    def test_unknown_action(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        assert _handle_action(adapter, {"action": "dance"}) is None
        assert _handle_action(adapter, {}) is None


# ── Options, players and UI toggles ──────────────────────────────────────────

class TestSetupActions:

    def test_set_option_from_json_value(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        outcome = _handle_action(adapter, {"action": "set_option", "key": "scoring_mode",
                                           "value": "target_race"})
        assert outcome.ok
        assert adapter.controller.options.scoring_mode == ScoringMode.TARGET_RACE

    def test_set_option_bad_value(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        assert _handle_action(adapter, {"action": "set_option", "key": "max_tile",
                                        "value": "nine"}) is None
        assert adapter.status == "Invalid option"
        assert adapter.controller.options.max_tile == 9

    def test_player_management(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        assert _handle_action(adapter, {"action": "add_player", "name": "Cy"}).ok
        cy = adapter.controller.players[-1]
        assert _handle_action(adapter, {"action": "rename_player", "player_id": cy.id,
                                        "name": "Cyril"}).ok
        assert cy.name == "Cyril"
        assert _handle_action(adapter, {"action": "rename_player", "player_id": cy.id,
                                        "name": 5}) is None
        assert _handle_action(adapter, {"action": "remove_player", "player_id": cy.id}).ok
        assert len(adapter.controller.players) == 2

    def test_add_player_ignores_non_string_name(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        assert _handle_action(adapter, {"action": "add_player", "name": 5}).ok
        assert adapter.controller.players[-1].name == "Player 3"

    def test_toggle_hints(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        _handle_action(adapter, {"action": "toggle_hints"})
        assert adapter.show_hints is True

    def test_speed_changes_with_autoplay(self, tmp_path):
        adapter = _make_adapter(tmp_path)
        adapter.enable_autoplay("best")
        _handle_action(adapter, {"action": "speed_up"})
        assert adapter.speed_name == "fast"
        _handle_action(adapter, {"action": "speed_down"})
        _handle_action(adapter, {"action": "speed_down"})
        assert adapter.speed_name == "slow"


# ── Query-string options ─────────────────────────────────────────────────────

class TestQueryOptions:

    def test_applies_valid_values(self, tmp_path):
        ctrl = _make_adapter(tmp_path).controller
        _apply_query_options(ctrl, {"max_tile": "10", "one_die": "under_six",
                                    "mode": "instant_win", "target": "20",
                                    "instant_win": "true"})
        assert ctrl.options == GameOptions(
            max_tile=10,
            one_die_rule=OneDieRule.UNDER_SIX,
            scoring_mode=ScoringMode.INSTANT_WIN,
            target_score=20,
            instant_win_on_shut=True,
        )

    def test_ignores_bad_values(self, tmp_path):
        ctrl = _make_adapter(tmp_path).controller
        _apply_query_options(ctrl, {"max_tile": "lots", "mode": "golf"})
        assert ctrl.options.max_tile == 9
        assert ctrl.options.scoring_mode == ScoringMode.LOWEST_REMAINDER


def test_index_page_served():
    client = app.test_client()
    response = client.get("/")
    assert response.status_code == 200
    assert b"Shut the Box" in response.data
