"""Monitor configuration resolved from explicit arguments and environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_LIVE_CAPACITY = 1000
DEFAULT_PROFILE_DIR = "profiles"

POLL_INTERVAL_ENV = "LOG_RULES_POLL_INTERVAL"
LIVE_CAPACITY_ENV = "LOG_RULES_LIVE_CAPACITY"
MAX_MATCHES_ENV = "LOG_RULES_MAX_MATCHES"
PROFILE_DIR_ENV = "LOG_RULES_PROFILE_DIR"


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    poll_interval: float = DEFAULT_POLL_INTERVAL
    live_capacity: int = DEFAULT_LIVE_CAPACITY
    max_matches: int | None = None  # None keeps every match event
    profile_dir: Path = Path(DEFAULT_PROFILE_DIR)
    # How long a vanished file may stay missing (rotation gap) before tailing ends.
    reopen_grace: float = 2.0
    encoding: str = "utf-8"
    decode_errors: str = "replace"


def _env_int(name: str, *, minimum: int) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _env_float(name: str) -> float | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = float(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def resolve_monitor_config(
    *,
    poll_interval: float | None = None,
    live_capacity: int | None = None,
    max_matches: int | None = None,
    profile_dir: str | Path | None = None,
) -> MonitorConfig:
    """Return a MonitorConfig; explicit arguments win over environment variables."""
    if poll_interval is None:
        poll_interval = _env_float(POLL_INTERVAL_ENV) or DEFAULT_POLL_INTERVAL
    elif poll_interval <= 0:
        raise ValueError("poll_interval must be > 0")

    if live_capacity is None:
        live_capacity = _env_int(LIVE_CAPACITY_ENV, minimum=1) or DEFAULT_LIVE_CAPACITY
    elif live_capacity < 1:
        raise ValueError("live_capacity must be >= 1")

    if max_matches is None:
        max_matches = _env_int(MAX_MATCHES_ENV, minimum=1)
    elif max_matches < 1:
        raise ValueError("max_matches must be >= 1")

    if profile_dir is None:
        profile_dir = os.getenv(PROFILE_DIR_ENV) or DEFAULT_PROFILE_DIR

    return MonitorConfig(
        poll_interval=poll_interval,
        live_capacity=live_capacity,
        max_matches=max_matches,
        profile_dir=Path(profile_dir),
    )
