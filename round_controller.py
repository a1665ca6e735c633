"""
RoundController — sequences players, scoring and hand-offs for Shut the Box.

Owns the player ledger, the active turn and the pending hand-off between
turns. Frontends and automation call the public action methods; each one
returns an Outcome and never raises for a game-rule violation. After every
successful change a read-only MatchSnapshot is handed to the snapshot sink.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, replace
from enum import Enum

from combos import select_best_move
from game_engine import (
    GameOptions,
    OneDieRule,
    Outcome,
    Rejection,
    ScoringMode,
    TileSet,
    TurnState,
    can_use_one_die,
    start_turn,
)
from game_engine import clear_selection as engine_clear_selection
from game_engine import confirm_move as engine_confirm_move
from game_engine import force_end as engine_force_end
from game_engine import roll_dice as engine_roll_dice
from game_engine import toggle_tile as engine_toggle_tile
from game_log import GameLog
from score_ledger import Player, ScoreLedger
from snapshot_store import MatchSnapshot, NullSink, PlayerRecord, SnapshotSink

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class PendingHandoff:
    """A prepared next turn, waiting for the device to be passed on."""
    player_index: int
    tiles: TileSet
    new_round: bool = False


_OPTION_TYPES = {
    "max_tile": int,
    "one_die_rule": OneDieRule,
    "scoring_mode": ScoringMode,
    "target_score": int,
    "instant_win_on_shut": bool,
}


def coerce_option(key, value):
    """Convert a raw option value (e.g. from JSON or argparse) to its typed form.

    Returns (value, None) on success or (None, Rejection.INVALID_OPTION).
    """
    kind = _OPTION_TYPES.get(key)
    if kind is None:
        return None, Rejection.INVALID_OPTION
    if issubclass(kind, Enum):
        if isinstance(value, kind):
            return value, None
        try:
            return kind(value), None
        except ValueError:
            return None, Rejection.INVALID_OPTION
    if kind is bool:
        if isinstance(value, bool):
            return value, None
        return None, Rejection.INVALID_OPTION
    if isinstance(value, bool) or not isinstance(value, int):
        return None, Rejection.INVALID_OPTION
    return value, None


class RoundController:
    """Drives a hot-seat match: rounds, turns, scoring and hand-offs.

    State is owned here and mutated only through the public methods. The
    combo generator, one-die rule and best-move selector are pure helpers
    called against read-only tuples.
    """

    def __init__(self, options: GameOptions | None = None, player_names: list | None = None,
                 sink: SnapshotSink | None = None, rng=None) -> None:
        """Initialize the controller in SETUP.

        Args:
            options: Game options (defaults to GameOptions()).
            player_names: Names for the initial players. Defaults to one player.
            sink: Where snapshots are published after each change.
            rng: Object with randint(a, b) used for dice; None uses random.
        """
        self.options = options or GameOptions()
        problem = self.options.validate()
        if problem is not None:
            raise ValueError(f"Invalid game options: {self.options!r}")

        self.ledger = ScoreLedger()
        for name in (player_names or [None]):
            self.ledger.add(name)

        self.sink = sink or NullSink()
        self.rng = rng
        self.game_log = GameLog()

        self.phase = GamePhase.SETUP
        self.round_number = 0
        self.turn: TurnState | None = None
        self.pending_handoff: PendingHandoff | None = None
        self.winner_ids: list[str] = []
        self.match_over = False

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def players(self) -> list[Player]:
        return self.ledger.players

    @property
    def current_player(self) -> Player | None:
        if self.turn is None:
            return None
        return self.players[self.turn.player_index]

    @property
    def next_player(self) -> Player | None:
        """The player waiting on the pending hand-off, if any."""
        if self.pending_handoff is None:
            return None
        return self.players[self.pending_handoff.player_index]

    @property
    def tiles(self) -> TileSet:
        """Board of the active turn, or a fresh board between turns."""
        if self.turn is not None:
            return self.turn.tiles
        if self.pending_handoff is not None:
            return self.pending_handoff.tiles
        return TileSet.full(self.options.max_tile)

    @property
    def best_move(self) -> tuple | None:
        """Advisory best combo for the current roll."""
        if self.turn is None or not self.turn.rolled:
            return None
        return select_best_move(self.turn.combos, self.turn.tiles.open)

    @property
    def can_roll_one_die(self) -> bool:
        if self.turn is None:
            return False
        return can_use_one_die(self.turn.tiles.open, self.options.one_die_rule,
                               self.turn.tiles.max_tile)

    @property
    def winners(self) -> list[Player]:
        return [p for p in self.players if p.id in self.winner_ids]

    @property
    def unfinished_counts(self) -> dict[str, int]:
        return self.ledger.unfinished_counts

    # ── Round lifecycle ───────────────────────────────────────────────────

    def start_round(self) -> Outcome:
        """Begin the first round (from SETUP) or the next one (from FINISHED).

        A fresh match is started when coming from SETUP or after the match
        has ended; under TARGET_RACE that resets the running totals.
        """
        if self.phase == GamePhase.IN_PROGRESS:
            return self._reject(Rejection.WRONG_PHASE, "start_round")
        if self.phase == GamePhase.SETUP or self.match_over:
            self.ledger.reset_scores()
            self.match_over = False
        self._begin_round(TileSet.full(self.options.max_tile))
        return self._commit()

    def reset_match(self) -> Outcome:
        """Drop all round and turn state and go back to SETUP.

        Players, names and unfinished-turn counters are kept.
        """
        self.phase = GamePhase.SETUP
        self.round_number = 0
        self.turn = None
        self.pending_handoff = None
        self.winner_ids = []
        self.match_over = False
        self.ledger.reset_scores()
        self.ledger.sanitize_names()
        self.game_log.clear()
        return self._commit()

    def acknowledge_next_turn(self) -> Outcome:
        """Apply the pending hand-off. Does nothing when none is pending."""
        handoff = self.pending_handoff
        if handoff is None:
            return Outcome(state=self.turn)
        if handoff.new_round:
            self._begin_round(handoff.tiles)
        else:
            self.pending_handoff = None
            self.turn = start_turn(handoff.player_index, handoff.tiles, self.options)
        return self._commit()

    # ── Turn actions ──────────────────────────────────────────────────────

    def roll(self, dice_count: int | None = None) -> Outcome:
        """Roll for the current player. dice_count is 1, 2 or None for the default."""
        if self.turn is None:
            return self._reject(Rejection.NO_ACTIVE_TURN, "roll")
        outcome = engine_roll_dice(self.turn, self.options, dice_count, rng=self.rng)
        if not outcome.ok:
            return self._reject(outcome.rejection, "roll")
        self.turn = outcome.state
        self.game_log.log_roll(self.round_number, self.turn.player_index,
                               self.current_player.name, self.turn.dice)
        if self.turn.finished:
            self._finish_turn()
        return self._commit(outcome.state)

    def toggle_tile(self, tile: int) -> Outcome:
        if self.turn is None:
            return self._reject(Rejection.NO_ACTIVE_TURN, "toggle_tile")
        return self._apply(engine_toggle_tile(self.turn, tile), "toggle_tile")

    def clear_selection(self) -> Outcome:
        if self.turn is None:
            return self._reject(Rejection.NO_ACTIVE_TURN, "clear_selection")
        return self._apply(engine_clear_selection(self.turn), "clear_selection")

    def confirm(self) -> Outcome:
        """Close the selected tiles. The turn ends if the box is now shut."""
        if self.turn is None:
            return self._reject(Rejection.NO_ACTIVE_TURN, "confirm")
        before = self.turn
        outcome = engine_confirm_move(before, self.options)
        if not outcome.ok:
            return self._reject(outcome.rejection, "confirm")
        self.turn = outcome.state
        self.game_log.log_close(self.round_number, before.player_index,
                                self.current_player.name, before.dice, before.selected)
        if self.turn.finished:
            self._finish_turn()
        return self._commit(outcome.state)

    def force_end(self) -> Outcome:
        """End the current turn early, scoring whatever is still open."""
        if self.turn is None:
            return self._reject(Rejection.NO_ACTIVE_TURN, "force_end")
        outcome = engine_force_end(self.turn)
        self.turn = outcome.state
        self._finish_turn()
        return self._commit(outcome.state)

    # ── Options & players ─────────────────────────────────────────────────

    def set_option(self, key: str, value) -> Outcome:
        """Change one game option.

        The board size can only change during SETUP. Values may be given as
        enum members or their string values.
        """
        typed, problem = coerce_option(key, value)
        if problem is not None:
            return self._reject(problem, f"set_option {key}={value!r}")
        if key == "max_tile" and self.phase != GamePhase.SETUP:
            return self._reject(Rejection.WRONG_PHASE, "set_option max_tile")
        options = replace(self.options, **{key: typed})
        problem = options.validate()
        if problem is not None:
            return self._reject(problem, f"set_option {key}={value!r}")
        self.options = options
        return self._commit()

    def add_player(self, name: str | None = None) -> Outcome:
        if self.phase == GamePhase.IN_PROGRESS:
            return self._reject(Rejection.WRONG_PHASE, "add_player")
        self.ledger.add(name)
        return self._commit()

    def remove_player(self, player_id: str) -> Outcome:
        if self.phase == GamePhase.IN_PROGRESS:
            return self._reject(Rejection.WRONG_PHASE, "remove_player")
        if self.ledger.index_of(player_id) is None:
            return self._reject(Rejection.UNKNOWN_PLAYER, "remove_player")
        if len(self.ledger) == 1:
            return self._reject(Rejection.LAST_PLAYER, "remove_player")
        self.ledger.remove(player_id)
        self.winner_ids = [pid for pid in self.winner_ids if pid != player_id]
        return self._commit()

    def rename_player(self, player_id: str, name: str) -> Outcome:
        if not self.ledger.rename(player_id, name):
            return self._reject(Rejection.UNKNOWN_PLAYER, "rename_player")
        return self._commit()

    # ── Snapshots ─────────────────────────────────────────────────────────

    def snapshot(self) -> MatchSnapshot:
        """Read-only view of the scoreboard for persistence."""
        return MatchSnapshot(
            players=tuple(
                PlayerRecord(id=p.id, name=p.name, total_score=p.total_score,
                             last_score=p.last_score)
                for p in self.players
            ),
            round_number=self.round_number,
            unfinished_counts=dict(self.ledger.unfinished_counts),
            winner_ids=tuple(self.winner_ids),
            match_over=self.match_over,
        )

    def restore(self, snapshot: MatchSnapshot) -> Outcome:
        """Load players and counters from a stored snapshot (SETUP only)."""
        if self.phase != GamePhase.SETUP:
            return self._reject(Rejection.WRONG_PHASE, "restore")
        if not snapshot.players:
            return self._reject(Rejection.LAST_PLAYER, "restore")
        self.ledger = ScoreLedger([
            Player(id=p.id, name=p.name, total_score=p.total_score, last_score=p.last_score)
            for p in snapshot.players
        ])
        known = {p.id for p in snapshot.players}
        self.ledger.unfinished_counts = {
            pid: count for pid, count in snapshot.unfinished_counts.items() if pid in known
        }
        return self._commit()

    # ── Internal ──────────────────────────────────────────────────────────

    def _begin_round(self, tiles: TileSet) -> None:
        self.ledger.sanitize_names()
        self.ledger.start_round(self.options.scoring_mode)
        self.round_number += 1
        self.phase = GamePhase.IN_PROGRESS
        self.pending_handoff = None
        self.winner_ids = []
        self.turn = start_turn(0, tiles, self.options)
        self.game_log.log_round_start(self.round_number, self.options.max_tile)
        logger.debug("Round %d started with %d player(s)", self.round_number, len(self.players))

    def _finish_turn(self) -> None:
        """Score the finished turn and decide what happens next."""
        turn = self.turn
        player = self.players[turn.player_index]
        remainder = turn.remainder
        self.ledger.record_turn(turn.player_index, remainder, self.options.scoring_mode)
        self.game_log.log_turn_end(self.round_number, turn.player_index, player.name, remainder)
        self.turn = None

        if remainder == 0 and self.options.instant_win:
            self._end_round([player.id])
            return

        next_index = turn.player_index + 1
        if next_index < len(self.players):
            self.pending_handoff = PendingHandoff(
                player_index=next_index,
                tiles=TileSet.full(self.options.max_tile),
            )
            return

        self._end_round(self._round_winners())

    def _round_winners(self) -> list[str]:
        """Winners once every player has had a turn."""
        mode = self.options.scoring_mode
        if mode == ScoringMode.INSTANT_WIN:
            # A shut box would already have ended the round
            return []
        elif mode in (ScoringMode.LOWEST_REMAINDER, ScoringMode.TARGET_RACE):
            played = self.ledger.participants()
            if len(played) == 1 and played[0].last_score > 0:
                return []
            return self.ledger.lowest_last_score_ids()
        raise ValueError(f"Unknown scoring mode: {mode!r}")

    def _end_round(self, winner_ids: list[str]) -> None:
        self.phase = GamePhase.FINISHED
        self.turn = None
        self.pending_handoff = None
        self.winner_ids = list(winner_ids)

        race = self.options.scoring_mode == ScoringMode.TARGET_RACE
        if race and self.ledger.anyone_reached(self.options.target_score):
            self.match_over = True
            self.winner_ids = self.ledger.lowest_total_ids()
        elif race or not self.winner_ids:
            self.pending_handoff = PendingHandoff(
                player_index=0,
                tiles=TileSet.full(self.options.max_tile),
                new_round=True,
            )

        names = [p.name for p in self.winners]
        self.game_log.log_round_end(self.round_number, names, match_over=self.match_over)
        if self.match_over:
            logger.info("Match over after round %d: %s", self.round_number, ", ".join(names))
        else:
            logger.info("Round %d finished: %s", self.round_number,
                        ", ".join(names) if names else "no winner")

    def _apply(self, outcome: Outcome, action: str) -> Outcome:
        if not outcome.ok:
            return self._reject(outcome.rejection, action)
        self.turn = outcome.state
        return self._commit(outcome.state)

    def _reject(self, reason: Rejection, action: str) -> Outcome:
        logger.debug("Rejected %s: %s", action, reason.name)
        return Outcome.rejected(reason, self.turn)

    def _commit(self, state: TurnState | None = None) -> Outcome:
        self.sink.save_snapshot(self.snapshot())
        return Outcome(state=state if state is not None else self.turn)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Optional list of args (for testing). None uses sys.argv.

    Returns:
        Parsed argparse.Namespace.
    """
    parser = argparse.ArgumentParser(description="Shut the Box")
    parser.add_argument("--players", nargs="+", metavar="NAME",
                        help="Player names in turn order (default: one player)")
    parser.add_argument("--max-tile", type=int, choices=range(3, 13), metavar="N",
                        help="Highest tile on the board, 3-12")
    parser.add_argument("--one-die", choices=[r.value for r in OneDieRule],
                        help="When a single die may be rolled")
    parser.add_argument("--mode", choices=[m.value for m in ScoringMode],
                        help="Scoring mode")
    parser.add_argument("--target", type=int, help="Target total for target_race")
    parser.add_argument("--instant-win", action="store_true", default=None,
                        help="Shutting the box ends the round immediately")
    parser.add_argument("--auto", choices=["best", "random"],
                        help="Let a strategy play every turn")
    parser.add_argument("--speed", choices=["slow", "normal", "fast"],
                        help="Auto-play speed")
    return parser.parse_args(argv)


def options_from_args(args: argparse.Namespace, base: GameOptions | None = None) -> GameOptions:
    """Overlay CLI flags on base options. Flags left unset keep the base value."""
    options = base or GameOptions()
    changes = {}
    if args.max_tile is not None:
        changes["max_tile"] = args.max_tile
    if args.one_die is not None:
        changes["one_die_rule"] = OneDieRule(args.one_die)
    if args.mode is not None:
        changes["scoring_mode"] = ScoringMode(args.mode)
    if args.target is not None:
        changes["target_score"] = args.target
    if args.instant_win is not None:
        changes["instant_win_on_shut"] = args.instant_win
    return replace(options, **changes)
