#!/usr/bin/env python3
"""
Unified entry point for the Shut the Box interfaces.

Usage:
    python shutthebox.py                                  # Default: terminal (Textual)
    python shutthebox.py --players Ann Bob --max-tile 9   # Two players, nine tiles
    python shutthebox.py --auto best --speed fast         # Watch the best-move strategy
    python shutthebox.py --ui web --port 8080             # Browser (Flask)

Individual entry points (tui.py, web.py) still work independently.
"""
import argparse
import sys


def main():
    # Pre-parse just the --ui flag, pass everything else through
    parser = argparse.ArgumentParser(
        description="Shut the Box — play in the terminal or the browser",
        add_help=False,
    )
    parser.add_argument("--ui", choices=["tui", "web"], default="tui",
                        help="Interface: tui (terminal, default) or web (browser)")
    args, remaining = parser.parse_known_args()

    if args.ui == "tui":
        from tui import main as run_tui
        run_tui(remaining)

    elif args.ui == "web":
        sys.argv = [sys.argv[0]] + remaining
        from web import main as run_web
        run_web()


if __name__ == "__main__":
    main()
