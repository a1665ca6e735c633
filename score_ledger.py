"""Per-player score bookkeeping for Shut the Box.

Tracks each player's remainder from their most recent turn, the cumulative
total, and how many turns they finished without shutting the box. How the
total moves depends on the scoring mode.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from game_engine import ScoringMode


def new_player_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Player:
    """A seat at the table."""
    id: str
    name: str
    total_score: int = 0
    last_score: int | None = None


class ScoreLedger:
    """Owns the player list and their scores."""

    def __init__(self, players: list[Player] | None = None) -> None:
        self.players: list[Player] = list(players) if players else []
        self.unfinished_counts: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.players)

    def index_of(self, player_id: str) -> int | None:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return None

    def add(self, name: str | None = None) -> Player:
        """Append a player, defaulting the name to 'Player N'."""
        if name is not None and not isinstance(name, str):
            raise TypeError(f"Player name must be a string, not {type(name).__name__}")
        name = (name or "").strip() or f"Player {len(self.players) + 1}"
        player = Player(id=new_player_id(), name=name)
        self.players.append(player)
        return player

    def remove(self, player_id: str) -> bool:
        idx = self.index_of(player_id)
        if idx is None:
            return False
        del self.players[idx]
        self.unfinished_counts.pop(player_id, None)
        return True

    def rename(self, player_id: str, name: str) -> bool:
        idx = self.index_of(player_id)
        if idx is None:
            return False
        self.players[idx].name = name
        return True

    def sanitize_names(self) -> None:
        """Replace blank names with 'Player N'."""
        for i, player in enumerate(self.players):
            player.name = player.name.strip() or f"Player {i + 1}"

    def record_turn(self, index: int, remainder: int, mode: ScoringMode) -> None:
        """Store a finished turn's remainder for the player at index.

        Under TARGET_RACE the remainder is added to the running total;
        otherwise the total is just this round's remainder.
        """
        player = self.players[index]
        player.last_score = remainder
        if mode == ScoringMode.TARGET_RACE:
            player.total_score += remainder
        else:
            player.total_score = remainder
        if remainder > 0:
            self.unfinished_counts[player.id] = self.unfinished_counts.get(player.id, 0) + 1

    def start_round(self, mode: ScoringMode) -> None:
        """Clear last scores; totals survive only under TARGET_RACE."""
        for player in self.players:
            player.last_score = None
            if mode != ScoringMode.TARGET_RACE:
                player.total_score = 0

    def reset_scores(self) -> None:
        """Zero every total and last score (new match)."""
        for player in self.players:
            player.total_score = 0
            player.last_score = None

    def participants(self) -> list[Player]:
        """Players who finished a turn this round."""
        return [p for p in self.players if p.last_score is not None]

    def lowest_last_score_ids(self) -> list[str]:
        """Ids of participants tied on the lowest last score."""
        played = self.participants()
        if not played:
            return []
        best = min(p.last_score for p in played)
        return [p.id for p in played if p.last_score == best]

    def lowest_total_ids(self) -> list[str]:
        """Ids of players tied on the lowest cumulative total."""
        if not self.players:
            return []
        best = min(p.total_score for p in self.players)
        return [p.id for p in self.players if p.total_score == best]

    def anyone_reached(self, target: int) -> bool:
        return any(p.total_score >= target for p in self.players)
