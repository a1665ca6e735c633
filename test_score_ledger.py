"""Tests for score_ledger.py — players, per-mode scoring and winner lookup."""

import pytest

from game_engine import ScoringMode
from score_ledger import Player, ScoreLedger, new_player_id


def make_ledger(*names):
    ledger = ScoreLedger()
    for name in names:
        ledger.add(name)
    return ledger


class TestPlayers:

    def test_ids_are_unique(self):
        assert new_player_id() != new_player_id()

    def test_add_defaults_name(self):
        ledger = make_ledger("Ann", None, "   ")
        assert [p.name for p in ledger.players] == ["Ann", "Player 2", "Player 3"]

    def test_add_refuses_non_string_name(self):
        ledger = ScoreLedger()
        with pytest.raises(TypeError):
            ledger.add(5)
        assert len(ledger) == 0

    def test_index_of(self):
        ledger = make_ledger("Ann", "Bob")
        bob = ledger.players[1]
        assert ledger.index_of(bob.id) == 1
        assert ledger.index_of("missing") is None

    def test_remove_drops_counter(self):
        ledger = make_ledger("Ann", "Bob")
        ann = ledger.players[0]
        ledger.record_turn(0, 5, ScoringMode.LOWEST_REMAINDER)
        assert ledger.remove(ann.id)
        assert len(ledger) == 1
        assert ann.id not in ledger.unfinished_counts

    def test_remove_unknown(self):
        assert not make_ledger("Ann").remove("missing")

    def test_rename_and_sanitize(self):
        ledger = make_ledger("Ann", "Bob")
        assert ledger.rename(ledger.players[1].id, "  ")
        ledger.sanitize_names()
        assert ledger.players[1].name == "Player 2"

    def test_rename_unknown(self):
        assert not make_ledger("Ann").rename("missing", "Zed")

    def test_construct_from_players(self):
        ledger = ScoreLedger([Player(id="a", name="Ann", total_score=7)])
        assert ledger.players[0].total_score == 7


class TestScoring:

    def test_lowest_remainder_total_is_this_round(self):
        ledger = make_ledger("Ann")
        ledger.record_turn(0, 8, ScoringMode.LOWEST_REMAINDER)
        ledger.start_round(ScoringMode.LOWEST_REMAINDER)
        ledger.record_turn(0, 3, ScoringMode.LOWEST_REMAINDER)
        assert ledger.players[0].total_score == 3
        assert ledger.players[0].last_score == 3

    def test_target_race_accumulates(self):
        ledger = make_ledger("Ann")
        ledger.record_turn(0, 8, ScoringMode.TARGET_RACE)
        ledger.start_round(ScoringMode.TARGET_RACE)
        assert ledger.players[0].last_score is None
        ledger.record_turn(0, 3, ScoringMode.TARGET_RACE)
        assert ledger.players[0].total_score == 11

    def test_unfinished_counter_skips_shut_boxes(self):
        ledger = make_ledger("Ann")
        pid = ledger.players[0].id
        ledger.record_turn(0, 0, ScoringMode.LOWEST_REMAINDER)
        assert ledger.unfinished_counts.get(pid, 0) == 0
        ledger.record_turn(0, 4, ScoringMode.LOWEST_REMAINDER)
        ledger.record_turn(0, 2, ScoringMode.LOWEST_REMAINDER)
        assert ledger.unfinished_counts[pid] == 2

    def test_reset_scores_keeps_counters(self):
        ledger = make_ledger("Ann")
        ledger.record_turn(0, 4, ScoringMode.TARGET_RACE)
        ledger.reset_scores()
        assert ledger.players[0].total_score == 0
        assert ledger.players[0].last_score is None
        assert ledger.unfinished_counts[ledger.players[0].id] == 1


class TestWinners:

    def test_lowest_last_score_ignores_players_yet_to_play(self):
        ledger = make_ledger("Ann", "Bob", "Cy")
        ledger.record_turn(0, 3, ScoringMode.LOWEST_REMAINDER)
        ledger.record_turn(1, 0, ScoringMode.LOWEST_REMAINDER)
        assert [p.name for p in ledger.participants()] == ["Ann", "Bob"]
        assert ledger.lowest_last_score_ids() == [ledger.players[1].id]

    def test_ties_share_the_win(self):
        ledger = make_ledger("Ann", "Bob")
        ledger.record_turn(0, 5, ScoringMode.LOWEST_REMAINDER)
        ledger.record_turn(1, 5, ScoringMode.LOWEST_REMAINDER)
        assert ledger.lowest_last_score_ids() == [p.id for p in ledger.players]

    def test_nobody_played(self):
        assert make_ledger("Ann").lowest_last_score_ids() == []

    def test_lowest_total_and_target(self):
        ledger = make_ledger("Ann", "Bob")
        ledger.record_turn(0, 12, ScoringMode.TARGET_RACE)
        ledger.record_turn(1, 30, ScoringMode.TARGET_RACE)
        assert ledger.lowest_total_ids() == [ledger.players[0].id]
        assert ledger.anyone_reached(30)
        assert not ledger.anyone_reached(31)
