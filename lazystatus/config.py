"""User settings stored as a JSON object under the platform config dir.

Holds the remembered theme plus optional timing overrides for the refresh
loop and flash messages. Anything missing or malformed means "use the
built-in default"; settings never prevent startup.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "lazystatus"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / "config.json"

DEFAULT_DEBOUNCE_SECONDS = 0.15
DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_FLASH_SECONDS = 3.0


@dataclass(frozen=True)
class Settings:
    theme: str | None = None
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    flash_seconds: float = DEFAULT_FLASH_SECONDS


def load_config() -> dict[str, object]:
    """Read the settings file as a dict.

    A missing file is silent; unreadable or non-JSON content is logged and
    treated as empty, as is any top-level value other than an object.
    """
    try:
        raw = CONFIG_PATH.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        logger.warning("ignoring malformed config %s: %s", CONFIG_PATH, exc)
        return {}
    if not isinstance(parsed, dict):
        return {}
    return parsed


def save_config(values: dict[str, object]) -> None:
    """Write ``values`` back to disk; failures are logged only."""
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(values, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not save config %s: %s", CONFIG_PATH, exc)


def _positive_number(values: dict[str, object], key: str, default: float) -> float:
    candidate = values.get(key)
    if isinstance(candidate, bool) or not isinstance(candidate, (int, float)) or candidate <= 0:
        return default
    return float(candidate)


def _theme_from(values: dict[str, object]) -> str | None:
    candidate = values.get("theme")
    if isinstance(candidate, str) and candidate.strip():
        return candidate.strip()
    return None


def save_theme_name(theme_name: str) -> None:
    """Remember ``theme_name`` for later runs, keeping every other key."""
    name = str(theme_name).strip()
    if name:
        save_config({**load_config(), "theme": name})


def load_settings() -> Settings:
    values = load_config()
    return Settings(
        theme=_theme_from(values),
        debounce_seconds=_positive_number(values, "debounce_seconds", DEFAULT_DEBOUNCE_SECONDS),
        poll_interval_seconds=_positive_number(values, "poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS),
        flash_seconds=_positive_number(values, "flash_seconds", DEFAULT_FLASH_SECONDS),
    )


__all__ = [
    "CONFIG_PATH",
    "Settings",
    "load_config",
    "load_settings",
    "save_config",
    "save_theme_name",
]
