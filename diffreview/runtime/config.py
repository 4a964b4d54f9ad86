"""Persistent JSON config helpers.

Stores review defaults: context lines around jumps, commit-list length, git
timeout, and highlight style. All access is defensive: malformed or missing
config falls back to defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

from platformdirs import user_config_dir

from ..git.resolver import DEFAULT_COMMIT_LIMIT
from ..git.runner import DEFAULT_TIMEOUT_SECONDS
from ..highlight import DEFAULT_STYLE
from .state import DEFAULT_CONTEXT_LINES

logger = logging.getLogger(__name__)

APP_NAME = "diffreview"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class ReviewSettings:
    context_lines: int = DEFAULT_CONTEXT_LINES
    commit_limit: int = DEFAULT_COMMIT_LIMIT
    git_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    style: str = DEFAULT_STYLE


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored so an unwritable
    config never interrupts a review.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", CONFIG_PATH, exc)


def _coerce_nonnegative_int(value: object, default: int) -> int:
    """Booleans and non-integers are invalid and fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return max(0, value)


def _coerce_positive_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


def _coerce_positive_float(value: object, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return default
    return float(value)


def load_settings() -> ReviewSettings:
    """Load review settings, replacing each invalid key with its default."""
    data = load_config()
    defaults = ReviewSettings()
    style = data.get("style")
    return ReviewSettings(
        context_lines=_coerce_nonnegative_int(data.get("context_lines"), defaults.context_lines),
        commit_limit=_coerce_positive_int(data.get("commit_limit"), defaults.commit_limit),
        git_timeout_seconds=_coerce_positive_float(data.get("git_timeout_seconds"), defaults.git_timeout_seconds),
        style=style if isinstance(style, str) and style.strip() else defaults.style,
    )


def save_settings(settings: ReviewSettings) -> None:
    """Merge ``settings`` into the config file, keeping unrelated keys."""
    config = load_config()
    config.update(asdict(settings))
    save_config(config)
