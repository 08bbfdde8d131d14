"""Runtime configuration for the display engine, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from services.rotation.rotation_builder import DEFAULT_FREQUENCY_N, DEFAULT_FREQUENCY_SLIDE_TYPE


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a number.") from exc
    if value <= minimum:
        raise RuntimeError(f"{name}={raw!r} must be greater than {minimum:g}.")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not an integer.") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DisplayConfig:
    """Settings shared by the engine, the tickers and the database layer.

    Attributes:
        frequency_slide_type: Slide type injected every `frequency_n` positions.
        frequency_n: Injection spacing; 0 or less disables injection.
        slide_refresh_seconds: How often playlists are re-resolved.
        guest_feed_seconds: How often guest reminder/check-in feeds are read.
        tick_seconds: UI tick driving countdowns and expiry detection.
        store_timeout_seconds: Upper bound on each store call.
        reminder_lookahead_minutes: Window for the "needs reminder" feed.
        reset_database_on_start: Wipe `app.db` the first time it is opened.
        log_level: Root logging level name.
    """

    frequency_slide_type: str = DEFAULT_FREQUENCY_SLIDE_TYPE
    frequency_n: int = DEFAULT_FREQUENCY_N
    slide_refresh_seconds: float = 60
    guest_feed_seconds: float = 5
    tick_seconds: float = 1
    store_timeout_seconds: float = 10
    reminder_lookahead_minutes: int = 5
    reset_database_on_start: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "DisplayConfig":
        """Build a config from environment variables, falling back to defaults.

        Raises:
            RuntimeError: If a numeric variable cannot be parsed or is out of range.
        """
        lookahead = _env_int("REMINDER_LOOKAHEAD_MINUTES", 5)
        if lookahead <= 0:
            raise RuntimeError(f"REMINDER_LOOKAHEAD_MINUTES={lookahead!r} must be positive.")
        return cls(
            frequency_slide_type=os.getenv("SNAP_FREQUENCY_SLIDE_TYPE") or DEFAULT_FREQUENCY_SLIDE_TYPE,
            frequency_n=_env_int("SNAP_FREQUENCY", DEFAULT_FREQUENCY_N),
            slide_refresh_seconds=_env_float("SLIDE_REFRESH_SECONDS", 60),
            guest_feed_seconds=_env_float("GUEST_FEED_SECONDS", 5),
            tick_seconds=_env_float("TICK_SECONDS", 1),
            store_timeout_seconds=_env_float("STORE_TIMEOUT_SECONDS", 10),
            reminder_lookahead_minutes=lookahead,
            reset_database_on_start=_env_bool("DATABASE_RESET_ON_START", False),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )
