"""
Shut the Box Game Engine - Pure game logic without UI dependencies

This module contains the board model, game options and the per-player turn
state machine. It uses immutable data structures and pure functions so every
rule can be unit tested without a frontend. Each action returns an Outcome
that carries either the new turn state or the reason the action was rejected.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple
import random

from combos import generate_tile_combos, is_same_combo, sum_tiles

MIN_TILE = 3
MAX_TILE = 12


class OneDieRule(Enum):
    """When a player may roll a single die instead of two"""
    NEVER = "never"
    AFTER_TOP_TILES = "after_top_tiles"
    UNDER_SIX = "under_six"


class ScoringMode(Enum):
    """Match-level rule set deciding who wins a round"""
    LOWEST_REMAINDER = "lowest_remainder"
    TARGET_RACE = "target_race"
    INSTANT_WIN = "instant_win"


class TurnPhase(Enum):
    """States of a single player's turn"""
    AWAITING_ROLL = "awaiting_roll"
    ROLLED = "rolled"
    SELECTING = "selecting"
    FINISHED = "finished"


class Rejection(Enum):
    """Why an action was refused. State is never changed by a rejected action."""
    NOT_ROLLED = "Roll the dice first"
    TILE_NOT_OPEN = "That tile is already shut"
    SELECTION_MISMATCH = "Selected tiles must match the dice total"
    ONE_DIE_NOT_ELIGIBLE = "One die is not allowed yet"
    WRONG_PHASE = "Not allowed right now"
    INVALID_OPTION = "Invalid option"
    INVALID_DICE_COUNT = "Roll one or two dice"
    NO_ACTIVE_TURN = "No turn in progress"
    UNKNOWN_PLAYER = "No such player"
    LAST_PLAYER = "At least one player is required"


@dataclass(frozen=True)
class GameOptions:
    """Configured rules for a match"""
    max_tile: int = 12
    one_die_rule: OneDieRule = OneDieRule.AFTER_TOP_TILES
    scoring_mode: ScoringMode = ScoringMode.LOWEST_REMAINDER
    target_score: int = 45
    instant_win_on_shut: bool = False

    @property
    def instant_win(self) -> bool:
        """Whether shutting the box ends the round on the spot."""
        return self.instant_win_on_shut or self.scoring_mode == ScoringMode.INSTANT_WIN

    def validate(self) -> Optional[Rejection]:
        """Return INVALID_OPTION for malformed configuration, else None."""
        if not isinstance(self.max_tile, int) or isinstance(self.max_tile, bool):
            return Rejection.INVALID_OPTION
        if not MIN_TILE <= self.max_tile <= MAX_TILE:
            return Rejection.INVALID_OPTION
        if not isinstance(self.target_score, int) or isinstance(self.target_score, bool):
            return Rejection.INVALID_OPTION
        if self.target_score <= 0:
            return Rejection.INVALID_OPTION
        if not isinstance(self.one_die_rule, OneDieRule):
            return Rejection.INVALID_OPTION
        if not isinstance(self.scoring_mode, ScoringMode):
            return Rejection.INVALID_OPTION
        return None


@dataclass(frozen=True)
class TileSet:
    """Open tiles of one board. Closed tiles are everything else in 1..max_tile."""
    max_tile: int
    open: Tuple[int, ...]

    @staticmethod
    def full(max_tile: int) -> 'TileSet':
        """Create a fresh board with every tile open"""
        return TileSet(max_tile=max_tile, open=tuple(range(1, max_tile + 1)))

    @property
    def closed(self) -> Tuple[int, ...]:
        open_set = set(self.open)
        return tuple(t for t in range(1, self.max_tile + 1) if t not in open_set)

    @property
    def remainder(self) -> int:
        return sum_tiles(self.open)

    @property
    def is_shut(self) -> bool:
        return not self.open

    def is_open(self, tile: int) -> bool:
        return tile in self.open

    def without(self, tiles) -> 'TileSet':
        """Return a new TileSet with the given tiles closed"""
        removed = set(tiles)
        return replace(self, open=tuple(t for t in self.open if t not in removed))


@dataclass(frozen=True)
class HistoryEntry:
    """One accepted close within a turn"""
    dice: Tuple[int, ...]
    closed_tiles: Tuple[int, ...]


@dataclass(frozen=True)
class TurnState:
    """Immutable state of one player's turn"""
    player_index: int
    tiles: TileSet
    phase: TurnPhase = TurnPhase.AWAITING_ROLL
    dice: Tuple[int, ...] = ()
    combos: Tuple[Tuple[int, ...], ...] = ()
    selected: Tuple[int, ...] = ()
    history: Tuple[HistoryEntry, ...] = ()
    can_roll_one_die: bool = False

    @property
    def rolled(self) -> bool:
        return self.phase in (TurnPhase.ROLLED, TurnPhase.SELECTING)

    @property
    def finished(self) -> bool:
        return self.phase == TurnPhase.FINISHED

    @property
    def remainder(self) -> int:
        return self.tiles.remainder

    @property
    def shut(self) -> bool:
        return self.tiles.is_shut

    @property
    def dice_total(self) -> int:
        return sum(self.dice)

    @property
    def selected_total(self) -> int:
        return sum(self.selected)


@dataclass(frozen=True)
class Outcome:
    """Result of any game action: the resulting turn state, or a rejection."""
    state: Optional[TurnState] = None
    rejection: Optional[Rejection] = None
    message: str = field(default="", compare=False)

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @staticmethod
    def rejected(reason: Rejection, state: Optional[TurnState] = None) -> 'Outcome':
        return Outcome(state=state, rejection=reason, message=reason.value)


def can_use_one_die(open_tiles, rule: OneDieRule, max_tile: int) -> bool:
    """
    Decide whether a single-die roll is currently allowed.

    Args:
        open_tiles: Values of the tiles still open
        rule: Configured one-die policy
        max_tile: Highest tile on the board

    Returns:
        True if the player may roll one die
    """
    if rule == OneDieRule.NEVER:
        return False
    elif rule == OneDieRule.AFTER_TOP_TILES:
        top_tiles = {max_tile - 2, max_tile - 1, max_tile}
        return top_tiles.isdisjoint(open_tiles)
    elif rule == OneDieRule.UNDER_SIX:
        return sum_tiles(open_tiles) < 6
    raise ValueError(f"Unknown one-die rule: {rule!r}")


# Game Action Functions

def start_turn(player_index: int, tiles: TileSet, options: GameOptions) -> TurnState:
    """
    Create the initial state of a player's turn.

    Args:
        player_index: Index of the player taking the turn
        tiles: Board for the turn (normally a fresh TileSet.full())
        options: Active game options

    Returns:
        TurnState awaiting the first roll
    """
    return TurnState(
        player_index=player_index,
        tiles=tiles,
        can_roll_one_die=can_use_one_die(tiles.open, options.one_die_rule, tiles.max_tile),
    )


def roll_dice(turn: TurnState, options: GameOptions, dice_count: Optional[int] = None,
              rng=None) -> Outcome:
    """
    Roll one or two dice and compute the legal combos for the total.

    With dice_count=None, one die is rolled when the one-die rule allows it,
    otherwise two. If the roll leaves no legal combo the turn finishes with
    the open tiles as its remainder; that is a normal outcome, not a rejection.

    Args:
        turn: Current turn state (must be awaiting a roll)
        options: Active game options
        dice_count: 1, 2 or None for the default
        rng: Object with randint(a, b); defaults to the random module

    Returns:
        Outcome with the rolled (or finished) turn, or a rejection
    """
    if turn.phase != TurnPhase.AWAITING_ROLL:
        return Outcome.rejected(Rejection.WRONG_PHASE, turn)

    one_die_ok = can_use_one_die(turn.tiles.open, options.one_die_rule, turn.tiles.max_tile)
    if dice_count is None:
        dice_count = 1 if one_die_ok else 2
    if dice_count not in (1, 2):
        return Outcome.rejected(Rejection.INVALID_DICE_COUNT, turn)
    if dice_count == 1 and not one_die_ok:
        return Outcome.rejected(Rejection.ONE_DIE_NOT_ELIGIBLE, turn)

    rng = rng or random
    dice = tuple(rng.randint(1, 6) for _ in range(dice_count))
    combos = tuple(tuple(c) for c in generate_tile_combos(turn.tiles.open, sum(dice)))

    return Outcome(state=replace(
        turn,
        dice=dice,
        combos=combos,
        selected=(),
        can_roll_one_die=one_die_ok,
        phase=TurnPhase.ROLLED if combos else TurnPhase.FINISHED,
    ))


def toggle_tile(turn: TurnState, tile: int) -> Outcome:
    """Add a tile to the selection, or remove it if already selected."""
    if turn.finished:
        return Outcome.rejected(Rejection.WRONG_PHASE, turn)
    if not turn.rolled:
        return Outcome.rejected(Rejection.NOT_ROLLED, turn)
    if not turn.tiles.is_open(tile):
        return Outcome.rejected(Rejection.TILE_NOT_OPEN, turn)

    if tile in turn.selected:
        selected = tuple(t for t in turn.selected if t != tile)
    else:
        selected = tuple(sorted(turn.selected + (tile,)))
    return Outcome(state=replace(turn, selected=selected, phase=TurnPhase.SELECTING))


def clear_selection(turn: TurnState) -> Outcome:
    """Empty the selection. A rolled turn goes back to ROLLED."""
    phase = TurnPhase.ROLLED if turn.rolled else turn.phase
    return Outcome(state=replace(turn, selected=(), phase=phase))


def confirm_move(turn: TurnState, options: GameOptions) -> Outcome:
    """
    Close the selected tiles if they form one of the legal combos.

    On success the tiles leave the board and a history entry is recorded.
    The turn finishes when the board is empty; otherwise the same player
    rolls again.

    Args:
        turn: Current turn state
        options: Active game options (for the next one-die check)

    Returns:
        Outcome with the new turn state, or a rejection leaving turn unchanged
    """
    if turn.finished:
        return Outcome.rejected(Rejection.WRONG_PHASE, turn)
    if not turn.rolled:
        return Outcome.rejected(Rejection.NOT_ROLLED, turn)
    if not turn.selected or not any(is_same_combo(c, turn.selected) for c in turn.combos):
        return Outcome.rejected(Rejection.SELECTION_MISMATCH, turn)

    tiles = turn.tiles.without(turn.selected)
    entry = HistoryEntry(dice=turn.dice, closed_tiles=turn.selected)
    return Outcome(state=replace(
        turn,
        tiles=tiles,
        dice=(),
        combos=(),
        selected=(),
        history=turn.history + (entry,),
        can_roll_one_die=can_use_one_die(tiles.open, options.one_die_rule, tiles.max_tile),
        phase=TurnPhase.FINISHED if tiles.is_shut else TurnPhase.AWAITING_ROLL,
    ))


def force_end(turn: TurnState) -> Outcome:
    """End the turn now; whatever is still open becomes the remainder."""
    return Outcome(state=replace(turn, selected=(), phase=TurnPhase.FINISHED))
