"""Game log for Shut the Box — records round events for the history view.

Pure Python, no frontend dependency. Captures round starts, rolls, closed
tiles, turn results and round results.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class LogEntry:
    """A single logged game event."""
    round_number: int
    event_type: str                             # "round_start", "roll", "close", "turn_end", "round_end"
    message: str
    player_index: int | None = None
    dice_values: tuple[int, ...] = ()
    closed_tiles: tuple[int, ...] = ()
    score: int | None = None
    result: str = "info"                        # "info", "win", "loss"


class GameLog:
    """Accumulates LogEntry records during a match."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def log_round_start(self, round_number: int, max_tile: int) -> None:
        """Record the start of a round."""
        self.entries.append(LogEntry(
            round_number=round_number,
            event_type="round_start",
            message=f"Round {round_number} started — aim to shut all {max_tile} tiles!",
        ))

    def log_roll(self, round_number: int, player_index: int, name: str, dice_values) -> None:
        """Record a dice roll."""
        dice_values = tuple(dice_values)
        self.entries.append(LogEntry(
            round_number=round_number,
            event_type="roll",
            message=f"{name} rolled {' + '.join(str(v) for v in dice_values)} = {sum(dice_values)}.",
            player_index=player_index,
            dice_values=dice_values,
        ))

    def log_close(self, round_number: int, player_index: int, name: str, dice_values, closed_tiles) -> None:
        """Record an accepted close."""
        closed_tiles = tuple(closed_tiles)
        self.entries.append(LogEntry(
            round_number=round_number,
            event_type="close",
            message=f"{name} closed {', '.join(str(t) for t in closed_tiles)}.",
            player_index=player_index,
            dice_values=tuple(dice_values),
            closed_tiles=closed_tiles,
        ))

    def log_turn_end(self, round_number: int, player_index: int, name: str, remainder: int) -> None:
        """Record a finished turn and its remainder."""
        shut = remainder == 0
        self.entries.append(LogEntry(
            round_number=round_number,
            event_type="turn_end",
            message=f"{name} shut the box!" if shut else f"{name} scores {remainder}.",
            player_index=player_index,
            score=remainder,
            result="win" if shut else "loss",
        ))

    def log_round_end(self, round_number: int, winner_names: list[str], match_over: bool = False) -> None:
        """Record the outcome of a round (or the whole match)."""
        if winner_names:
            label = "wins the match" if match_over else "wins the round"
            message = f"{', '.join(winner_names)} {label}!"
            result = "win"
        else:
            message = "No winner this round."
            result = "info"
        self.entries.append(LogEntry(
            round_number=round_number,
            event_type="round_end",
            message=message,
            result=result,
        ))

    def recent(self, limit: int = 10) -> list[LogEntry]:
        return self.entries[-limit:]

    def clear(self) -> None:
        """Remove all entries."""
        self.entries = []
