"""Persistent settings for Shut the Box.

Stores default game options and UI preferences in ~/.shutthebox_settings.json.
No frontend dependency — follows the same pattern as snapshot_store.py.
"""

import json
from dataclasses import replace
from pathlib import Path

from ai import SPEED_PRESETS
from game_engine import GameOptions
from round_controller import coerce_option

_OPTION_DEFAULTS = GameOptions()

DEFAULTS = {
    "max_tile": _OPTION_DEFAULTS.max_tile,
    "one_die_rule": _OPTION_DEFAULTS.one_die_rule.value,
    "scoring_mode": _OPTION_DEFAULTS.scoring_mode.value,
    "target_score": _OPTION_DEFAULTS.target_score,
    "instant_win_on_shut": _OPTION_DEFAULTS.instant_win_on_shut,
    "show_hints": False,
    "speed": "normal",
}

# Keys that map straight onto GameOptions fields
OPTION_KEYS = ("max_tile", "one_die_rule", "scoring_mode", "target_score", "instant_win_on_shut")


def _default_path():
    """Return the default path for the settings file."""
    return Path.home() / ".shutthebox_settings.json"


def _checked(key, value):
    """Return value if it is usable for key, else the default for key."""
    if key in OPTION_KEYS:
        typed, problem = coerce_option(key, value)
        if problem is None and replace(_OPTION_DEFAULTS, **{key: typed}).validate() is None:
            return value
    elif key == "show_hints":
        if isinstance(value, bool):
            return value
    elif key == "speed":
        if value in SPEED_PRESETS:
            return value
    return DEFAULTS[key]


def load_settings(path=None):
    """Load settings from JSON, overlaying stored values on DEFAULTS.

    A missing or corrupt file gives DEFAULTS. Each stored value is checked
    on its own: an unusable one (a max tile of 99, an unknown speed) falls
    back to its default without discarding the rest. Unknown keys are dropped.
    """
    path = Path(path) if path is not None else _default_path()
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError):
        return dict(DEFAULTS)
    if not isinstance(data, dict):
        return dict(DEFAULTS)
    return {key: _checked(key, data[key]) if key in data else default
            for key, default in DEFAULTS.items()}


def save_settings(settings, path=None):
    """Write the known settings keys to JSON. Write errors are ignored."""
    path = Path(path) if path is not None else _default_path()
    known = {key: settings[key] for key in DEFAULTS if key in settings}
    try:
        path.write_text(json.dumps(known, indent=2))
    except OSError:
        pass


def settings_from_options(options, show_hints=False, speed="normal"):
    """Build a settings dict from GameOptions plus UI preferences."""
    return {
        "max_tile": options.max_tile,
        "one_die_rule": options.one_die_rule.value,
        "scoring_mode": options.scoring_mode.value,
        "target_score": options.target_score,
        "instant_win_on_shut": options.instant_win_on_shut,
        "show_hints": show_hints,
        "speed": speed,
    }
