from __future__ import annotations

"""Game configuration loaded from environment variables and ``settings.json``.

The module provides a central location for runtime options.  Environment
variables take precedence over values stored in the JSON file found next to
this module.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

# Path to the JSON configuration file bundled with the game
SETTINGS_FILE = Path(__file__).with_name("settings.json")


def _load_file_settings(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        # If the settings file is missing or invalid, fall back to defaults
        return {}
    return data if isinstance(data, dict) else {}


_FILE_SETTINGS: Dict[str, Any] = _load_file_settings(SETTINGS_FILE)


def _get_bool(env_var: str, key: str, default: bool = False) -> bool:
    """Return a boolean setting from ``env_var`` or ``key`` in the JSON file."""
    value = os.environ.get(env_var)
    if value is not None:
        return value.lower() not in ("0", "false", "")
    return bool(_FILE_SETTINGS.get(key, default))


def _get_str(env_var: str, key: str, default: str) -> str:
    """Return a string setting from ``env_var`` or ``key`` in the JSON file."""
    value = os.environ.get(env_var)
    if value is not None:
        return value
    return str(_FILE_SETTINGS.get(key, default))


def _get_int(env_var: str, key: str, default: int) -> int:
    """Return an integer setting from environment or JSON."""
    value = os.environ.get(env_var)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            return default
    try:
        return int(_FILE_SETTINGS.get(key, default))
    except (TypeError, ValueError):
        return default


def _get_optional_int(env_var: str, key: str) -> Optional[int]:
    """Like :func:`_get_int` but ``None`` when the option is unset."""
    value = os.environ.get(env_var)
    if value is None:
        value = _FILE_SETTINGS.get(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Public settings
# ---------------------------------------------------------------------------
# Seed for map generation; ``None`` picks a fresh map every game
SEED: Optional[int] = _get_optional_int("NEXUS_SEED", "seed")

# Energy each player starts with (5 to 10 depending on the variant)
STARTING_ENERGY: int = _get_int("NEXUS_STARTING_ENERGY", "starting_energy", 10)

# Let the automated opponent play player 2
AI_OPPONENT: bool = _get_bool("NEXUS_AI_OPPONENT", "ai_opponent", True)

# Pause before the automated opponent acts, in milliseconds
AI_DELAY_MS: int = _get_int("NEXUS_AI_DELAY_MS", "ai_delay_ms", 400)

# Level name passed to ``logging.basicConfig``
LOG_LEVEL: str = _get_str("NEXUS_LOG_LEVEL", "log_level", "INFO").upper()

FULLSCREEN: bool = _get_bool("NEXUS_FULLSCREEN", "fullscreen", False)


__all__ = [
    "SEED",
    "STARTING_ENERGY",
    "AI_OPPONENT",
    "AI_DELAY_MS",
    "LOG_LEVEL",
    "FULLSCREEN",
]
