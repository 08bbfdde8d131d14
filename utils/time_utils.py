"""Conversions between stored text values and Python time types."""

from __future__ import annotations

from datetime import datetime
from typing import Optional


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialise a datetime as ISO-8601 text (seconds precision)."""
    if value is None:
        return None
    return value.isoformat(timespec="seconds")


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def normalize_hhmm(value: Optional[str]) -> Optional[str]:
    """Zero-pad a `H:MM` style string so plain string comparison orders it.

    Seconds are dropped (`09:30:00` -> `09:30`). Empty values become None.

    Raises:
        ValueError: If the value is not a valid time of day.
    """
    if value is None or not value.strip():
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return f"{hour:02d}:{minute:02d}"
