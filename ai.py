"""
Shut the Box AI — Strategy interface, auto-play driver and game loop helpers.

Contains:
- ShutTheBoxStrategy abstract base class
- BestMoveStrategy, RandomStrategy, MostTilesStrategy
- AutoPlayer, a tick-paced driver that only calls public RoundController actions
- play_turn() and play_round() synchronous loops for benchmarks and tests
"""
from abc import ABC, abstractmethod
import random

from combos import select_best_move, sum_tiles
from game_engine import TurnPhase

# Ticks between automated actions
SPEED_PRESETS = {
    "slow": 40,
    "normal": 20,
    "fast": 5,
}
SPEED_NAMES = ["slow", "normal", "fast"]


# ── Strategy Interface ──────────────────────────────────────────────────────

class ShutTheBoxStrategy(ABC):
    """Abstract base class for Shut the Box strategies."""

    def choose_dice_count(self, turn, can_roll_one_die):
        """Return 1 or 2. Default: one die whenever it is allowed."""
        return 1 if can_roll_one_die else 2

    @abstractmethod
    def choose_combo(self, turn):
        """Pick one of turn.combos to close.

        Args:
            turn: TurnState after a roll with at least one legal combo

        Returns:
            Tuple of tiles to close
        """
        ...


class BestMoveStrategy(ShutTheBoxStrategy):
    """Plays the advisory best move: biggest tile first."""

    def choose_combo(self, turn):
        return select_best_move(turn.combos, turn.tiles.open)


class RandomStrategy(ShutTheBoxStrategy):
    """Baseline: any legal combo, and a coin flip on one die when allowed."""

    def __init__(self, rng=None):
        self.rng = rng or random.Random()

    def choose_dice_count(self, turn, can_roll_one_die):
        if can_roll_one_die and self.rng.random() < 0.5:
            return 1
        return 2

    def choose_combo(self, turn):
        return tuple(self.rng.choice(turn.combos))


class MostTilesStrategy(ShutTheBoxStrategy):
    """Closes as many tiles as possible; ties go to the higher tiles."""

    def choose_combo(self, turn):
        return min(turn.combos, key=lambda c: (-len(c), sum_tiles(turn.tiles.open) - sum(c),
                                               tuple(-t for t in sorted(c, reverse=True))))


def make_strategy(token):
    """Create a strategy from a CLI token, or None for a human player."""
    if token == "best":
        return BestMoveStrategy()
    elif token == "random":
        return RandomStrategy()
    elif token == "most_tiles":
        return MostTilesStrategy()
    return None


# ── Auto-play driver ────────────────────────────────────────────────────────

class AutoPlayer:
    """Plays turns on behalf of the players, one action every few ticks.

    The driver only uses the controller's public actions, so every rule the
    controller enforces still applies. Hand-offs are acknowledged only when
    acknowledge_handoffs is set; otherwise the pass-the-device pause waits
    for a person.
    """

    def __init__(self, controller, strategy, speed="normal", acknowledge_handoffs=False):
        self.controller = controller
        self.strategy = strategy
        self.acknowledge_handoffs = acknowledge_handoffs
        self.timer = 0
        self.speed_name = speed
        self.delay = SPEED_PRESETS[speed]
        self.reason = ""

    def change_speed(self, direction):
        """Change pacing. direction=+1 for faster, -1 for slower.

        Returns True if speed actually changed, False if already at limit.
        """
        idx = SPEED_NAMES.index(self.speed_name)
        new_idx = idx + direction
        if 0 <= new_idx < len(SPEED_NAMES):
            self.speed_name = SPEED_NAMES[new_idx]
            self.delay = SPEED_PRESETS[self.speed_name]
            return True
        return False

    def tick(self):
        """Advance one frame; perform an action when the delay has elapsed.

        Returns the Outcome of the action taken, or None if nothing happened.
        """
        self.timer += 1
        if self.timer < self.delay:
            return None
        self.timer = 0
        return self.step()

    def step(self):
        """Perform the next action immediately."""
        ctrl = self.controller
        turn = ctrl.turn
        if turn is None:
            if ctrl.pending_handoff is not None and self.acknowledge_handoffs:
                self.reason = "Passing to the next player"
                return ctrl.acknowledge_next_turn()
            return None

        if turn.phase == TurnPhase.AWAITING_ROLL:
            count = self.strategy.choose_dice_count(turn, ctrl.can_roll_one_die)
            self.reason = "Rolling one die" if count == 1 else "Rolling two dice"
            return ctrl.roll(count)

        if turn.selected and turn.selected in turn.combos:
            self.reason = f"Closing {', '.join(str(t) for t in turn.selected)}"
            return ctrl.confirm()

        combo = self.strategy.choose_combo(turn)
        ctrl.clear_selection()
        outcome = None
        for tile in combo:
            outcome = ctrl.toggle_tile(tile)
        self.reason = f"Picking {', '.join(str(t) for t in combo)}"
        return outcome


# ── Game Loop ───────────────────────────────────────────────────────────────

def play_turn(controller, strategy):
    """Play the current player's whole turn synchronously.

    Returns:
        The finished TurnState
    """
    driver = AutoPlayer(controller, strategy)
    last = None
    while controller.turn is not None:
        outcome = driver.step()
        if outcome is None or not outcome.ok:
            break
        last = outcome.state
    return last


def play_round(controller, strategy):
    """Play one round for every player, acknowledging hand-offs between turns.

    Starts a round first if none is in progress. Returns the round's winner ids.
    """
    handoff = controller.pending_handoff
    if handoff is not None and handoff.new_round:
        controller.acknowledge_next_turn()
    elif controller.turn is None and handoff is None:
        controller.start_round()
    while True:
        if controller.turn is not None:
            play_turn(controller, strategy)
            if controller.turn is not None:
                # Strategy got stuck on a rejected action
                break
            continue
        handoff = controller.pending_handoff
        if handoff is not None and not handoff.new_round:
            controller.acknowledge_next_turn()
            continue
        break
    return list(controller.winner_ids)
