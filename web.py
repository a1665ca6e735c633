#!/usr/bin/env python3
"""
Shut the Box Web — Flask + WebSocket server for browser-based play.

Each WebSocket connection gets its own RoundController (one hot-seat table
per browser). State is pushed to the client as a JSON snapshot after every
action, and at ~30 FPS while auto-play is running.
"""
import json
import logging
import threading
import time

from flask import Flask, render_template, request
from flask_sock import Sock

from frontend_adapter import FrontendAdapter
from game_engine import GameOptions
from round_controller import RoundController, coerce_option
from snapshot_store import JsonSnapshotStore

logger = logging.getLogger(__name__)

app = Flask(__name__)
sock = Sock(app)


@app.route("/")
def index():
    """Single-page table; connects to the WebSocket for play."""
    return render_template("index.html")


def _apply_query_options(controller, args):
    """Overlay query-string options on the controller. Bad values are ignored."""
    for key, param, convert in (
        ("max_tile", "max_tile", int),
        ("one_die_rule", "one_die", str),
        ("scoring_mode", "mode", str),
        ("target_score", "target", int),
    ):
        raw = args.get(param)
        if raw is None:
            continue
        try:
            controller.set_option(key, convert(raw))
        except ValueError:
            logger.warning("Ignoring bad %s=%r", param, raw)
    if args.get("instant_win", "false") == "true":
        controller.set_option("instant_win_on_shut", True)


@sock.route("/ws")
def websocket(ws):
    """WebSocket handler — one match per connection."""
    names = [n.strip() for n in request.args.get("players", "").split(",") if n.strip()]
    controller = RoundController(
        options=GameOptions(),
        player_names=names or None,
        sink=JsonSnapshotStore(),
    )
    adapter = FrontendAdapter(controller)
    adapter.load_settings()
    _apply_query_options(controller, request.args)
    speed = request.args.get("speed", "normal")
    if speed in ("slow", "normal", "fast"):
        adapter.speed_name = speed
    auto = request.args.get("auto", "")
    if auto:
        adapter.enable_autoplay(auto)

    lock = threading.Lock()
    running = True

    def push():
        with lock:
            snapshot = adapter.get_game_snapshot()
        ws.send(json.dumps(snapshot))

    def tick_loop():
        """Background thread: tick auto-play and push state at ~30 FPS."""
        nonlocal running
        while running:
            try:
                with lock:
                    adapter.update()
                    snapshot = adapter.get_game_snapshot()
                ws.send(json.dumps(snapshot))
            except Exception:
                logger.error("Tick loop error", exc_info=True)
                running = False
                break
            time.sleep(1 / 30)

    if adapter.autoplayer is not None:
        threading.Thread(target=tick_loop, daemon=True).start()

    try:
        push()
        while running:
            data = ws.receive()
            if data is None:
                break
            try:
                action = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Invalid JSON from client: %s", data)
                continue
            if not isinstance(action, dict):
                logger.warning("Ignoring non-object message: %s", data)
                continue

            with lock:
                _handle_action(adapter, action)
            push()
    except Exception:
        logger.error("WebSocket receive error", exc_info=True)
    finally:
        running = False


def _handle_action(adapter, action):
    """Dispatch a client action to the adapter. Returns the Outcome, or None."""
    cmd = action.get("action", "")

    if cmd == "roll":
        count = action.get("dice")
        if count is not None and (isinstance(count, bool) or count not in (1, 2)):
            return None
        return adapter.do_roll(count)

    elif cmd == "toggle":
        tile = action.get("tile")
        if isinstance(tile, int) and not isinstance(tile, bool):
            return adapter.do_toggle(tile)

    elif cmd == "clear":
        return adapter.do_clear()

    elif cmd == "confirm":
        return adapter.do_confirm()

    elif cmd == "end_turn":
        return adapter.do_end_turn()

    elif cmd == "next":
        return adapter.do_next()

    elif cmd == "reset":
        return adapter.do_reset()

    elif cmd == "toggle_hints":
        adapter.toggle_hints()

    elif cmd == "set_option":
        key = action.get("key", "")
        value, problem = coerce_option(key, action.get("value"))
        if problem is None:
            return adapter.set_option(key, value)
        adapter.status = problem.value

    elif cmd == "add_player":
        name = action.get("name")
        return adapter.add_player(name if isinstance(name, str) else None)

    elif cmd == "remove_player":
        return adapter.remove_player(action.get("player_id", ""))

    elif cmd == "rename_player":
        name = action.get("name")
        if isinstance(name, str):
            return adapter.rename_player(action.get("player_id", ""), name)

    elif cmd == "speed_up":
        adapter.change_speed(+1)

    elif cmd == "speed_down":
        adapter.change_speed(-1)

    return None


def main():
    """Entry point for the web server."""
    import argparse
    parser = argparse.ArgumentParser(description="Shut the Box Web Server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=5000, help="Port (default: 5000)")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    print(f"Starting Shut the Box web server at http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
