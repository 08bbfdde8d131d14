"""Eligibility predicates for scheduled slides and playlists.

Every function here is pure: the answer depends only on the entity snapshot
and the `now` passed in. Times of day are compared as zero-padded `HH:MM`
strings, which is valid because the store normalises them on read.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from models.screen_record import Playlist, Schedule, Slide, TimeWindow


def format_hhmm(now: datetime) -> str:
    """Return the wall-clock time of `now` as `HH:MM`."""
    return f"{now.hour:02d}:{now.minute:02d}"


def weekday_index(now: datetime) -> int:
    """Return the weekday of `now` with 0=Sunday through 6=Saturday."""
    return (now.weekday() + 1) % 7


def window_contains(window: TimeWindow, hhmm: str) -> bool:
    """Return True if `hhmm` falls inside `window`, bounds inclusive.

    A window whose end sorts before its start wraps past midnight.
    """
    if window.end < window.start:
        return hhmm >= window.start or hhmm <= window.end
    return window.start <= hhmm <= window.end


def resolve_windows(schedule: Schedule) -> List[TimeWindow]:
    """Return the time-of-day windows that apply to `schedule`.

    Complete `time_slots` entries win; the legacy start/end pair is used only
    when no slot is usable. An empty result means "all day".
    """
    windows = [slot for slot in schedule.time_slots if slot.start and slot.end]
    if not windows and schedule.time_start and schedule.time_end:
        windows.append(TimeWindow(start=schedule.time_start, end=schedule.time_end))
    return windows


def is_within_schedule(schedule: Schedule, now: datetime) -> bool:
    """Apply the date-range, weekday and time-window checks of `schedule`.

    The `enabled` flag is not consulted here; callers decide what a disabled
    schedule means for their entity.
    """
    if schedule.start_at is not None and now < schedule.start_at:
        return False
    if schedule.end_at is not None and now > schedule.end_at:
        return False

    if schedule.days_of_week and weekday_index(now) not in schedule.days_of_week:
        return False

    windows = resolve_windows(schedule)
    if not windows:
        return True

    current = format_hhmm(now)
    return any(window_contains(window, current) for window in windows)


def is_eligible_now(slide: Slide, now: datetime) -> bool:
    """Return True if `slide` may be shown at `now`."""
    if not slide.is_active:
        return False
    if not slide.schedule.enabled:
        return True
    return is_within_schedule(slide.schedule, now)


def is_playlist_scheduled_now(playlist: Playlist, now: datetime) -> bool:
    """Return True if `playlist` wins the scheduled tier at `now`.

    Only playlists with scheduling enabled take part. `Playlist.is_active`
    marks manual activation and is handled by the next resolution tier.
    """
    if not playlist.schedule.enabled:
        return False
    return is_within_schedule(playlist.schedule, now)
