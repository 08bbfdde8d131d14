"""Shared encoding of the scheduling columns used by screens and playlists."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence, Tuple

from models.screen_record import Schedule, TimeWindow
from utils.option_decoding import unwrap_json
from utils.time_utils import from_db_timestamp, normalize_hhmm, to_db_timestamp

LOGGER = logging.getLogger(__name__)

SCHEDULE_COLUMNS = (
    "scheduling_enabled",
    "start_at",
    "end_at",
    "days_of_week",
    "time_start",
    "time_end",
)


def _decode_json_list(raw: Optional[str], column: str) -> list:
    if not raw:
        return []
    try:
        value = unwrap_json(raw)
    except ValueError as exc:
        LOGGER.warning("Ignoring unreadable %s value %r: %s", column, raw, exc)
        return []
    return value if isinstance(value, list) else []


def _safe_hhmm(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        return normalize_hhmm(str(value))
    except ValueError:
        LOGGER.warning("Ignoring invalid time of day %r", value)
        return None


def decode_time_slots(raw: Optional[str]) -> Tuple[TimeWindow, ...]:
    """Decode stored `[{"start": "22:00", "end": "02:00"}, ...]` text.

    Slots missing either bound keep an empty string there, which the window
    resolver treats as incomplete.
    """
    slots = []
    for item in _decode_json_list(raw, "time_slots"):
        if not isinstance(item, dict):
            continue
        slots.append(
            TimeWindow(
                start=_safe_hhmm(item.get("start")) or "",
                end=_safe_hhmm(item.get("end")) or "",
            )
        )
    return tuple(slots)


def schedule_from_row(values: Sequence[Any], time_slots: Optional[str] = None) -> Schedule:
    """Build a `Schedule` from the six SCHEDULE_COLUMNS values, in order."""
    enabled, start_at, end_at, days, time_start, time_end = values
    days_of_week = tuple(
        int(day) for day in _decode_json_list(days, "days_of_week") if str(day).lstrip("-").isdigit()
    )
    return Schedule(
        enabled=bool(enabled),
        start_at=from_db_timestamp(start_at),
        end_at=from_db_timestamp(end_at),
        days_of_week=days_of_week,
        time_start=_safe_hhmm(time_start),
        time_end=_safe_hhmm(time_end),
        time_slots=decode_time_slots(time_slots),
    )


def schedule_to_params(schedule: Schedule) -> Tuple[Any, ...]:
    """Return values for SCHEDULE_COLUMNS, in order."""
    return (
        int(schedule.enabled),
        to_db_timestamp(schedule.start_at),
        to_db_timestamp(schedule.end_at),
        json.dumps(list(schedule.days_of_week)) if schedule.days_of_week else None,
        normalize_hhmm(schedule.time_start),
        normalize_hhmm(schedule.time_end),
    )


def encode_time_slots(slots: Sequence[TimeWindow]) -> Optional[str]:
    if not slots:
        return None
    return json.dumps([{"start": slot.start, "end": slot.end} for slot in slots])
