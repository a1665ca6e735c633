"""FrontendAdapter — Shared UI state management for all Shut the Box frontends.

Owns the hints toggle, the status line derived from the last action,
settings persistence, optional auto-play hookup and the JSON game snapshot
pushed to the browser. Pure Python — no Textual or Flask dependency.

Each frontend (TUI, web) creates a FrontendAdapter wrapping a RoundController
and delegates UI-state logic here, keeping only rendering and input
translation frontend-specific.
"""

from ai import AutoPlayer, SPEED_PRESETS, make_strategy
from round_controller import GamePhase
from settings import OPTION_KEYS, load_settings, save_settings, settings_from_options


class FrontendAdapter:
    """Shared UI state management for all Shut the Box frontends."""

    def __init__(self, controller, settings_path=None):
        self.controller = controller
        self.settings_path = settings_path

        self.show_hints = False
        self.speed_name = "normal"
        self.status = "Press N to start a round"

        # Auto-play (None when every player is human)
        self.autoplayer = None

    # ── Settings ──────────────────────────────────────────────────────────

    def load_settings(self):
        """Load persisted settings and apply them to adapter + controller.

        Stored values that fail validation arrive as their DEFAULTS.
        """
        settings = load_settings(self.settings_path)
        for key in OPTION_KEYS:
            self.controller.set_option(key, settings[key])
        self.show_hints = bool(settings.get("show_hints", False))
        speed = settings.get("speed", "normal")
        if speed in SPEED_PRESETS:
            self.speed_name = speed

    def _save_settings(self):
        """Persist current settings to disk."""
        save_settings(
            settings_from_options(self.controller.options, self.show_hints, self.speed_name),
            self.settings_path,
        )

    def toggle_hints(self):
        """Toggle best-move hints and save."""
        self.show_hints = not self.show_hints
        self._save_settings()

    def set_option(self, key, value):
        """Change a game option and save it if accepted."""
        outcome = self.controller.set_option(key, value)
        self._report(outcome, f"{key.replace('_', ' ').capitalize()} set")
        if outcome.ok:
            self._save_settings()
        return outcome

    # ── Auto-play ─────────────────────────────────────────────────────────

    def enable_autoplay(self, token, acknowledge_handoffs=True):
        """Attach an auto-play driver using the named strategy. Returns True if enabled."""
        strategy = make_strategy(token)
        if strategy is None:
            self.autoplayer = None
            return False
        self.autoplayer = AutoPlayer(self.controller, strategy, speed=self.speed_name,
                                     acknowledge_handoffs=acknowledge_handoffs)
        return True

    def change_speed(self, direction):
        """Change auto-play speed. Returns True if speed changed."""
        if self.autoplayer is None:
            return False
        if self.autoplayer.change_speed(direction):
            self.speed_name = self.autoplayer.speed_name
            self._save_settings()
            return True
        return False

    def update(self):
        """Per-frame update: tick the auto-play driver if one is attached."""
        if self.autoplayer is None:
            return None
        outcome = self.autoplayer.tick()
        if outcome is not None:
            self._report(outcome, self.autoplayer.reason)
        return outcome

    # ── Game actions ──────────────────────────────────────────────────────

    def do_roll(self, dice_count=None):
        outcome = self.controller.roll(dice_count)
        if outcome.ok:
            turn = outcome.state
            if turn.finished:
                self.status = f"Rolled {turn.dice_total}: no tiles fit. Turn over with {turn.remainder}."
            else:
                self.status = f"Rolled {turn.dice_total}. Pick tiles that add up to it."
        else:
            self.status = outcome.message
        return outcome

    def do_toggle(self, tile):
        outcome = self.controller.toggle_tile(tile)
        if outcome.ok:
            turn = outcome.state
            self.status = f"Selected {turn.selected_total} of {turn.dice_total}."
        else:
            self.status = outcome.message
        return outcome

    def do_clear(self):
        return self._report(self.controller.clear_selection(), "Selection cleared.")

    def do_confirm(self):
        outcome = self.controller.confirm()
        if outcome.ok and outcome.state.finished:
            self.status = "You shut the box!"
        else:
            self._report(outcome, "Tiles closed. Roll again.")
        return outcome

    def do_end_turn(self):
        outcome = self.controller.force_end()
        if outcome.ok:
            self.status = f"Turn ended with {outcome.state.remainder}."
        else:
            self.status = outcome.message
        return outcome

    def do_next(self):
        """Pass the device on, or start a new round when nothing is pending."""
        ctrl = self.controller
        if ctrl.pending_handoff is not None:
            outcome = ctrl.acknowledge_next_turn()
        else:
            outcome = ctrl.start_round()
        if outcome.ok and ctrl.current_player is not None:
            self.status = f"{ctrl.current_player.name}, roll the dice!"
        elif not outcome.ok:
            self.status = outcome.message
        return outcome

    def do_reset(self):
        outcome = self.controller.reset_match()
        self.status = "Match reset. Press N to start a round."
        return outcome

    def add_player(self, name=None):
        return self._report(self.controller.add_player(name), "Player added.")

    def remove_player(self, player_id):
        return self._report(self.controller.remove_player(player_id), "Player removed.")

    def rename_player(self, player_id, name):
        return self._report(self.controller.rename_player(player_id, name), "Player renamed.")

    def _report(self, outcome, success_message):
        self.status = success_message if outcome.ok else outcome.message
        return outcome

    # ── Derived view state ────────────────────────────────────────────────

    @property
    def hint(self):
        """Best move to highlight, only when hints are on."""
        if not self.show_hints:
            return None
        return self.controller.best_move

    def banner(self):
        """One-line summary of what the table is waiting for."""
        ctrl = self.controller
        if ctrl.phase == GamePhase.SETUP:
            return "Set up players and rules, then start a round."
        if ctrl.pending_handoff is not None:
            nxt = ctrl.next_player
            if ctrl.pending_handoff.new_round:
                names = ", ".join(p.name for p in ctrl.winners) or "no winner"
                return f"Round {ctrl.round_number} over ({names}). Pass to {nxt.name} for the next round."
            return f"Pass the device to {nxt.name}."
        if ctrl.phase == GamePhase.FINISHED:
            names = ", ".join(p.name for p in ctrl.winners)
            if ctrl.match_over:
                return f"{names} wins the match!"
            if names:
                return f"{names} wins round {ctrl.round_number}!"
            return f"Round {ctrl.round_number} over — no winner."
        return f"Round {ctrl.round_number} — {ctrl.current_player.name}'s turn"

    # ── Full state snapshot (for web frontend) ────────────────────────────

    def get_game_snapshot(self):
        """Return a complete JSON-serializable dict of game + UI state."""
        ctrl = self.controller
        turn = ctrl.turn
        options = ctrl.options
        board = ctrl.tiles
        selected = set(turn.selected) if turn else set()
        playable = set()
        if turn is not None:
            for combo in turn.combos:
                playable.update(combo)
        hint = set(self.hint or ())

        tiles = [
            {
                "value": t,
                "open": board.is_open(t),
                "selected": t in selected,
                "playable": t in playable,
                "hint": t in hint,
            }
            for t in range(1, board.max_tile + 1)
        ]

        players = [
            {
                "id": p.id,
                "name": p.name,
                "total_score": p.total_score,
                "last_score": p.last_score,
                "unfinished": ctrl.unfinished_counts.get(p.id, 0),
                "active": turn is not None and i == turn.player_index,
                "winner": p.id in ctrl.winner_ids,
            }
            for i, p in enumerate(ctrl.players)
        ]

        handoff = None
        if ctrl.pending_handoff is not None:
            handoff = {
                "player": ctrl.next_player.name,
                "new_round": ctrl.pending_handoff.new_round,
            }

        return {
            "phase": ctrl.phase.value,
            "round": ctrl.round_number,
            "tiles": tiles,
            "dice": list(turn.dice) if turn else [],
            "dice_total": turn.dice_total if turn else 0,
            "turn_phase": turn.phase.value if turn else None,
            "combos": [list(c) for c in turn.combos] if turn else [],
            "selected_total": turn.selected_total if turn else 0,
            "remainder": board.remainder,
            "can_roll": turn is not None and not turn.rolled and not turn.finished,
            "can_roll_one_die": ctrl.can_roll_one_die,
            "can_start": ctrl.phase != GamePhase.IN_PROGRESS,
            "players": players,
            "handoff": handoff,
            "match_over": ctrl.match_over,
            "options": {
                "max_tile": options.max_tile,
                "one_die_rule": options.one_die_rule.value,
                "scoring_mode": options.scoring_mode.value,
                "target_score": options.target_score,
                "instant_win_on_shut": options.instant_win_on_shut,
            },
            "show_hints": self.show_hints,
            "autoplay": self.autoplayer is not None,
            "speed": self.speed_name,
            "status": self.status,
            "banner": self.banner(),
            "log": [
                {"round": e.round_number, "message": e.message, "result": e.result}
                for e in ctrl.game_log.recent(12)
            ],
        }
