#!/usr/bin/env python3
"""
Shut the Box TUI — Terminal-based frontend using Textual.

Keyboard-driven interface with a tile row, box-art dice, a player bar,
a pass-the-device overlay between turns and optional auto-play.
"""
import logging
import sys

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Center, Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Static

from frontend_adapter import FrontendAdapter
from round_controller import GamePhase, RoundController, options_from_args, parse_args
from settings import OPTION_KEYS
from snapshot_store import JsonSnapshotStore

logger = logging.getLogger(__name__)


# ── Box art ──────────────────────────────────────────────────────────────────

PIPS = {
    1: ("       ", "   ●   ", "       "),
    2: (" ●     ", "       ", "     ● "),
    3: (" ●     ", "   ●   ", "     ● "),
    4: (" ●   ● ", "       ", " ●   ● "),
    5: (" ●   ● ", "   ●   ", " ●   ● "),
    6: (" ●   ● ", " ●   ● ", " ●   ● "),
}

# Tile keys: 1-9, then 0, - and = for 10, 11 and 12
TILE_KEYS = {
    "1": 1, "2": 2, "3": 3, "4": 4, "5": 5, "6": 6, "7": 7, "8": 8, "9": 9,
    "0": 10, "minus": 11, "equals": 12,
}


def render_dice(dice):
    """Render the rolled dice side by side, or an empty cup before a roll."""
    if not dice:
        return "\n".join(["┌───────┐", "│       │", "│   ?   │", "│       │", "└───────┘"])
    rows = ["  ".join("┌───────┐" for _ in dice)]
    for line in range(3):
        rows.append("  ".join(f"│{PIPS[d][line]}│" for d in dice))
    rows.append("  ".join("└───────┘" for _ in dice))
    rows.append(f"Total: {sum(dice)}")
    return "\n".join(rows)


def render_tiles(tiles):
    """Render one tile row from the adapter's snapshot tile dicts."""
    top, mid, bottom = [], [], []
    for t in tiles:
        label = f"{t['value']:>2}"
        if not t["open"]:
            cell = "[dim]░░[/dim]"
        elif t["selected"]:
            cell = f"[reverse bold]{label}[/reverse bold]"
        elif t["hint"]:
            cell = f"[bold cyan]{label}[/bold cyan]"
        elif t["playable"]:
            cell = f"[green]{label}[/green]"
        else:
            cell = label
        top.append("┌──┐")
        mid.append(f"│{cell}│")
        bottom.append("└──┘")
    return "\n".join([" ".join(top), " ".join(mid), " ".join(bottom)])


# ── Widgets ──────────────────────────────────────────────────────────────────

class TileDisplay(Static):
    """The row of numbered tiles."""

    def render(self):
        return render_tiles(self.app.adapter.get_game_snapshot()["tiles"])


class DiceDisplay(Static):
    """Box-art dice for the current roll."""

    def render(self):
        turn = self.app.controller.turn
        return render_dice(turn.dice if turn else ())


class StatusDisplay(Static):
    """Banner, status line and auto-play reasoning."""

    def render(self):
        adapter = self.app.adapter
        lines = [f"[bold]{adapter.banner()}[/bold]", adapter.status]
        turn = self.app.controller.turn
        if turn is not None and turn.rolled:
            lines.append(f"Selected {turn.selected_total} of {turn.dice_total}")
        if self.app.controller.can_roll_one_die:
            lines.append("[dim]One die allowed (O)[/dim]")
        if adapter.autoplayer is not None and adapter.autoplayer.reason:
            lines.append(f"[dim]{adapter.autoplayer.reason}[/dim]")
        return "\n".join(lines)


class PlayersDisplay(Static):
    """Scoreboard: one line per player, plus the recent log."""

    def render(self):
        snap = self.app.adapter.get_game_snapshot()
        lines = [f"[bold]Round {snap['round']}[/bold]"]
        for p in snap["players"]:
            marker = "▸" if p["active"] else " "
            star = " ★" if p["winner"] else ""
            last = "—" if p["last_score"] is None else p["last_score"]
            lines.append(f"{marker}{p['name']:<12} last {last:>3}  total {p['total_score']:>4}{star}")
        if snap["autoplay"]:
            lines.append(f"\nSpeed: {snap['speed'].capitalize()} ([ / ])")
        if snap["log"]:
            lines.append("")
            lines.extend(f"[dim]{e['message']}[/dim]" for e in snap["log"][-6:])
        return "\n".join(lines)


# ── Modal Screens ────────────────────────────────────────────────────────────

class HelpScreen(ModalScreen):
    """Help overlay showing key bindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
    ]

    def compose(self) -> ComposeResult:
        controls = [
            ("Space", "Roll two dice"),
            ("O", "Roll one die (when allowed)"),
            ("1-9, 0, -, =", "Toggle tiles 1-12"),
            ("Enter", "Close the selected tiles"),
            ("Backspace", "Clear the selection"),
            ("E", "End the turn now"),
            ("N", "Next player / start a round"),
            ("H", "Best-move hints"),
            ("R", "Reset the match"),
            ("[ / ]", "Auto-play speed"),
            ("Esc", "Close overlay / Quit"),
        ]
        text = "[bold]CONTROLS[/bold]\n\n"
        for key, desc in controls:
            text += f"  {key:<16} {desc}\n"
        text += "\n[dim]Press Esc or ? to close[/dim]"
        yield Center(Static(text, id="help-panel"))


class PassDeviceScreen(ModalScreen[bool]):
    """Hand-off checkpoint: wait until the next player has the device."""

    BINDINGS = [
        Binding("enter", "ready", "Ready"),
        Binding("space", "ready", "Ready"),
        Binding("escape", "later", "Later"),
    ]

    def __init__(self, player_name: str, new_round: bool):
        super().__init__()
        self.player_name = player_name
        self.new_round = new_round

    def compose(self) -> ComposeResult:
        heading = "Next round" if self.new_round else "Next turn"
        text = f"[bold]{heading}[/bold]\n\n"
        text += f"Pass the device to [bold]{self.player_name}[/bold].\n\n"
        text += "Enter when ready,  Esc to look at the board first"
        yield Center(Static(text, id="handoff-panel"))

    def action_ready(self):
        self.dismiss(True)

    def action_later(self):
        self.dismiss(False)


# ── Main App ─────────────────────────────────────────────────────────────────

class ShutTheBoxApp(App):
    """Shut the Box terminal UI application."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #game-area {
        layout: horizontal;
        height: 1fr;
    }

    #board-panel {
        width: 70;
        padding: 1 2;
    }

    #players-panel {
        width: 1fr;
        padding: 1 2;
    }

    #tile-display, #dice-display, #status-display {
        height: auto;
        margin-bottom: 1;
    }

    #roll-btn {
        width: 20;
    }

    #help-panel, #handoff-panel {
        padding: 2 4;
        border: thick $accent;
        background: $surface;
        width: 60;
        height: auto;
    }
    """

    BINDINGS = [
        Binding("space", "roll(2)", "Roll", show=True),
        Binding("o", "roll(1)", "One die", show=True),
        *[Binding(key, f"tile({value})", f"Tile {value}", show=False)
          for key, value in TILE_KEYS.items()],
        Binding("enter", "confirm", "Close tiles", show=True),
        Binding("backspace", "clear", "Clear"),
        Binding("e", "end_turn", "End turn"),
        Binding("n", "next", "Next", show=True),
        Binding("h", "hints", "Hints", show=True),
        Binding("r", "reset", "Reset"),
        Binding("right_square_bracket", "speed(1)", "+Speed"),
        Binding("left_square_bracket", "speed(-1)", "-Speed"),
        Binding("question_mark", "help", "Help"),
        Binding("escape", "quit_or_close", "Quit"),
    ]

    def __init__(self, adapter: FrontendAdapter):
        super().__init__()
        self.adapter = adapter
        self.controller = adapter.controller
        self._prompted_handoff = None
        self._tick_timer = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="game-area"):
            with Vertical(id="board-panel"):
                yield TileDisplay(id="tile-display")
                yield DiceDisplay(id="dice-display")
                roll_btn = Button("ROLL", id="roll-btn", variant="primary")
                roll_btn.can_focus = False
                yield roll_btn
                yield StatusDisplay(id="status-display")
            with Vertical(id="players-panel"):
                yield PlayersDisplay(id="players-display")
        yield Footer()

    def on_mount(self):
        self.title = "Shut the Box"
        if self.adapter.autoplayer is not None and self.controller.phase == GamePhase.SETUP:
            self.adapter.do_next()
        self._tick_timer = self.set_interval(1 / 20, self._game_tick)

    def _game_tick(self):
        """Per-frame update at ~20 FPS: auto-play, hand-off prompt, redraw."""
        if self.adapter.autoplayer is not None:
            self.adapter.update()
        self._maybe_prompt_handoff()
        self._refresh_display()

    def _maybe_prompt_handoff(self):
        handoff = self.controller.pending_handoff
        if handoff is None or handoff is self._prompted_handoff:
            return
        auto = self.adapter.autoplayer
        if auto is not None and auto.acknowledge_handoffs:
            return
        self._prompted_handoff = handoff

        def on_dismiss(ready: bool):
            if ready and self.controller.pending_handoff is handoff:
                self.adapter.do_next()
            self._refresh_display()

        self.push_screen(PassDeviceScreen(self.controller.next_player.name, handoff.new_round),
                         on_dismiss)

    def _refresh_display(self):
        """Refresh all display widgets."""
        try:
            for widget_id in ("#tile-display", "#dice-display", "#status-display",
                              "#players-display"):
                self.query_one(widget_id).refresh()
            turn = self.controller.turn
            can_roll = turn is not None and not turn.rolled and not turn.finished
            self.query_one("#roll-btn", Button).disabled = not can_roll
        except Exception:
            logger.debug("Refresh error", exc_info=True)

    # ── Actions ──────────────────────────────────────────────────────────

    def _human_turn(self):
        """Whether keyboard play is accepted (auto-play owns the turn otherwise)."""
        return self.adapter.autoplayer is None

    def action_roll(self, count: int):
        if self._human_turn():
            self.adapter.do_roll(count)
            self._refresh_display()

    @on(Button.Pressed, "#roll-btn")
    def on_roll_button(self):
        self.action_roll(2)

    def action_tile(self, value: int):
        if not self._human_turn():
            return
        if value > self.controller.tiles.max_tile:
            return
        self.adapter.do_toggle(value)
        self._refresh_display()

    def action_confirm(self):
        if self._human_turn():
            self.adapter.do_confirm()
            self._refresh_display()

    def action_clear(self):
        if self._human_turn():
            self.adapter.do_clear()
            self._refresh_display()

    def action_end_turn(self):
        if self._human_turn():
            self.adapter.do_end_turn()
            self._refresh_display()

    def action_next(self):
        self.adapter.do_next()
        self._refresh_display()

    def action_hints(self):
        self.adapter.toggle_hints()
        self.adapter.status = "Hints on" if self.adapter.show_hints else "Hints off"
        self._refresh_display()

    def action_reset(self):
        self.adapter.do_reset()
        self._prompted_handoff = None
        self._refresh_display()

    def action_speed(self, direction: int):
        self.adapter.change_speed(direction)
        self._refresh_display()

    def action_help(self):
        self.push_screen(HelpScreen())

    def action_quit_or_close(self):
        if len(self.screen_stack) > 1:
            self.pop_screen()
        else:
            self.exit()


def build_adapter(args, store=None, settings_path=None):
    """Create the controller and adapter from parsed CLI args.

    Saved settings are applied first and CLI flags override them. Without
    --players the players of the last saved match are restored.
    """
    store = store if store is not None else JsonSnapshotStore()
    saved = None if args.players else store.load()
    controller = RoundController(player_names=args.players, sink=store)
    adapter = FrontendAdapter(controller, settings_path=settings_path)
    adapter.load_settings()

    options = options_from_args(args, controller.options)
    if options.validate() is not None:
        raise ValueError(f"Invalid game options: {options!r}")
    for key in OPTION_KEYS:
        controller.set_option(key, getattr(options, key))

    if saved is not None and saved.players:
        controller.restore(saved)

    if args.speed:
        adapter.speed_name = args.speed
    if args.auto:
        adapter.enable_autoplay(args.auto, acknowledge_handoffs=True)
    return adapter


def main(argv=None):
    """Entry point for the TUI."""
    args = parse_args(argv)
    try:
        adapter = build_adapter(args)
    except ValueError as exc:
        print(f"Error: {exc}")
        sys.exit(2)
    ShutTheBoxApp(adapter).run()


if __name__ == "__main__":
    main()
