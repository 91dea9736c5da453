"""
Runtime settings.

Values come from environment variables; CLI flags override them.

    LEARNHELPER_STATE             path of the persisted state file
    LEARNHELPER_SOURCE            snapshot URL or file used by `refresh`
    LEARNHELPER_REFRESH_MINUTES   minimum minutes between refreshes (default 15)
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

from learnhelper.errors import ConfigError

DEFAULT_REFRESH_MINUTES = 15


def default_state_path() -> Path:
    """
    Return the default location of state.json inside the package.

    A function instead of a constant so tests can point elsewhere.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "state.json"


@dataclass(frozen=True)
class Settings:
    state_path: Path
    source: Optional[str]
    refresh_interval: timedelta


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env

    state_path = env.get("LEARNHELPER_STATE", "").strip()
    source = env.get("LEARNHELPER_SOURCE", "").strip() or None

    minutes_raw = env.get("LEARNHELPER_REFRESH_MINUTES", "").strip()
    if minutes_raw:
        try:
            minutes = float(minutes_raw)
        except ValueError as e:
            raise ConfigError(f"LEARNHELPER_REFRESH_MINUTES is not a number: {minutes_raw!r}") from e
        if not math.isfinite(minutes):
            raise ConfigError(f"LEARNHELPER_REFRESH_MINUTES must be finite: {minutes_raw!r}")
        if minutes < 0:
            raise ConfigError("LEARNHELPER_REFRESH_MINUTES must not be negative")
    else:
        minutes = DEFAULT_REFRESH_MINUTES

    try:
        interval = timedelta(minutes=minutes)
    except (ValueError, OverflowError) as e:
        raise ConfigError(f"LEARNHELPER_REFRESH_MINUTES is out of range: {minutes_raw!r}") from e

    return Settings(
        state_path=Path(state_path) if state_path else default_state_path(),
        source=source,
        refresh_interval=interval,
    )
