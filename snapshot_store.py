"""Score snapshot persistence for Shut the Box.

The round controller hands a read-only MatchSnapshot to a SnapshotSink after
every change. JsonSnapshotStore keeps the latest one in
~/.shutthebox_scores.json so player names and scores survive a restart.
The core never touches the file itself.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerRecord:
    id: str
    name: str
    total_score: int
    last_score: int | None


@dataclass(frozen=True)
class MatchSnapshot:
    """Everything a persistence layer needs to restore the scoreboard."""
    players: tuple[PlayerRecord, ...]
    round_number: int
    unfinished_counts: dict[str, int] = field(default_factory=dict)
    winner_ids: tuple[str, ...] = ()
    match_over: bool = False
    updated_at: float = field(default=0.0, compare=False)

    def to_dict(self) -> dict:
        """Serialize to a JSON-safe dict."""
        return {
            "players": [
                {"id": p.id, "name": p.name, "total_score": p.total_score,
                 "last_score": p.last_score}
                for p in self.players
            ],
            "round": self.round_number,
            "unfinished_counts": dict(self.unfinished_counts),
            "winner_ids": list(self.winner_ids),
            "match_over": self.match_over,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> MatchSnapshot:
        """Deserialize from a dict. Raises KeyError/TypeError/ValueError on bad shape."""
        players = tuple(
            PlayerRecord(
                id=str(p["id"]),
                name=str(p["name"]),
                total_score=int(p.get("total_score", 0)),
                last_score=None if p.get("last_score") is None else int(p["last_score"]),
            )
            for p in data["players"]
        )
        counts = {str(k): int(v) for k, v in (data.get("unfinished_counts") or {}).items()}
        return cls(
            players=players,
            round_number=int(data.get("round", 0)),
            unfinished_counts=counts,
            winner_ids=tuple(str(i) for i in data.get("winner_ids", ())),
            match_over=bool(data.get("match_over", False)),
            updated_at=float(data.get("updated_at", 0.0)),
        )


class SnapshotSink(ABC):
    """Receives snapshots from the round controller."""

    @abstractmethod
    def save_snapshot(self, snapshot: MatchSnapshot) -> None: ...


class NullSink(SnapshotSink):
    """Discards snapshots (tests, benchmarks)."""

    def save_snapshot(self, snapshot):
        pass


class MemorySink(SnapshotSink):
    """Keeps every snapshot in a list."""

    def __init__(self):
        self.snapshots = []

    def save_snapshot(self, snapshot):
        self.snapshots.append(snapshot)

    @property
    def latest(self):
        return self.snapshots[-1] if self.snapshots else None


def _default_path():
    """Return the default path for the scores file."""
    return Path.home() / ".shutthebox_scores.json"


class JsonSnapshotStore(SnapshotSink):
    """Persists the latest snapshot as JSON, written atomically."""

    def __init__(self, path=None):
        self.path = Path(path) if path is not None else _default_path()

    def save_snapshot(self, snapshot):
        data = snapshot.to_dict()
        data["updated_at"] = time.time()
        try:
            raw = json.dumps(data, indent=2).encode()
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            closed = False
            try:
                os.write(fd, raw)
                os.close(fd)
                closed = True
                os.replace(tmp, self.path)
            except BaseException:
                if not closed:
                    os.close(fd)
                try:
                    os.unlink(tmp)
                except OSError:
                    pass
                raise
        except OSError:
            logger.warning("Failed to save scores to %s", self.path, exc_info=True)

    def load(self) -> MatchSnapshot | None:
        """Return the stored snapshot, or None if missing or corrupt."""
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, OSError):
            logger.warning("Failed to load stored scores from %s", self.path, exc_info=True)
            return None
        if not isinstance(data, dict) or not isinstance(data.get("players"), list):
            return None
        try:
            return MatchSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning("Stored scores in %s have unexpected structure", self.path)
            return None

    def clear(self) -> None:
        """Delete the stored snapshot."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Failed to clear stored scores at %s", self.path, exc_info=True)
