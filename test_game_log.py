"""Tests for game_log.py — event recording and queries."""

from game_log import GameLog, LogEntry


class TestLogEntry:

    def test_defaults(self):
        entry = LogEntry(round_number=1, event_type="round_start", message="go")
        assert entry.player_index is None
        assert entry.dice_values == ()
        assert entry.closed_tiles == ()
        assert entry.score is None
        assert entry.result == "info"


class TestGameLog:

    def test_round_start(self):
        log = GameLog()
        log.log_round_start(1, 9)
        entry = log.entries[0]
        assert entry.event_type == "round_start"
        assert "9 tiles" in entry.message

    def test_roll_and_close(self):
        log = GameLog()
        log.log_roll(1, 0, "Ann", [4, 5])
        log.log_close(1, 0, "Ann", (4, 5), [2, 7])
        roll, close = log.entries
        assert roll.dice_values == (4, 5)
        assert roll.message == "Ann rolled 4 + 5 = 9."
        assert close.closed_tiles == (2, 7)
        assert close.message == "Ann closed 2, 7."

    def test_turn_end_shut_and_unfinished(self):
        log = GameLog()
        log.log_turn_end(1, 0, "Ann", 0)
        log.log_turn_end(1, 1, "Bob", 7)
        shut, scored = log.entries
        assert shut.message == "Ann shut the box!"
        assert shut.result == "win"
        assert scored.message == "Bob scores 7."
        assert scored.result == "loss"
        assert scored.score == 7

    def test_round_end_messages(self):
        log = GameLog()
        log.log_round_end(1, ["Ann"])
        log.log_round_end(2, [])
        log.log_round_end(3, ["Ann", "Bob"], match_over=True)
        assert log.entries[0].message == "Ann wins the round!"
        assert log.entries[0].result == "win"
        assert log.entries[1].message == "No winner this round."
        assert log.entries[1].result == "info"
        assert log.entries[2].message == "Ann, Bob wins the match!"

    def test_recent(self):
        log = GameLog()
        log.log_round_start(1, 9)
        log.log_turn_end(1, 0, "Ann", 3)
        log.log_round_start(2, 9)
        log.log_turn_end(2, 1, "Bob", 0)
        assert log.recent(1)[0].player_index == 1

    def test_clear(self):
        log = GameLog()
        log.log_round_start(1, 9)
        log.clear()
        assert log.entries == []
