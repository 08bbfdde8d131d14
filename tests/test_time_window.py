"""Tests for slide and playlist eligibility."""

from datetime import datetime

import pytest

from conftest import make_slide
from models.screen_record import Playlist, Schedule, TimeWindow
from services.scheduling.time_window import (
    is_eligible_now,
    is_playlist_scheduled_now,
    resolve_windows,
    weekday_index,
    window_contains,
)

OVERNIGHT = TimeWindow(start="22:00", end="02:00")


def test_weekday_index_starts_on_sunday():
    assert weekday_index(datetime(2024, 1, 7, 12, 0)) == 0  # Sunday
    assert weekday_index(datetime(2024, 1, 5, 12, 0)) == 5  # Friday
    assert weekday_index(datetime(2024, 1, 6, 12, 0)) == 6  # Saturday


@pytest.mark.parametrize(
    "hhmm, expected",
    [("22:00", True), ("23:59", True), ("00:00", True), ("02:00", True), ("12:00", False), ("02:01", False)],
)
def test_overnight_window(hhmm, expected):
    assert window_contains(OVERNIGHT, hhmm) is expected


def test_normal_window_bounds_are_inclusive():
    window = TimeWindow(start="09:00", end="17:00")
    assert window_contains(window, "09:00")
    assert window_contains(window, "17:00")
    assert not window_contains(window, "17:01")


def test_inactive_slide_is_never_eligible():
    slide = make_slide(1, is_active=False)
    assert not is_eligible_now(slide, datetime(2024, 1, 5, 12, 0))


def test_disabled_schedule_ignores_every_other_attribute():
    schedule = Schedule(enabled=False, days_of_week=(1,), time_start="01:00", time_end="02:00")
    slide = make_slide(1, schedule=schedule)
    assert is_eligible_now(slide, datetime(2024, 1, 5, 12, 0))


def test_date_range_is_checked_first():
    schedule = Schedule(enabled=True, start_at=datetime(2024, 2, 1), end_at=datetime(2024, 2, 29, 23, 59))
    slide = make_slide(1, schedule=schedule)
    assert not is_eligible_now(slide, datetime(2024, 1, 31, 12, 0))
    assert is_eligible_now(slide, datetime(2024, 2, 14, 12, 0))
    assert not is_eligible_now(slide, datetime(2024, 3, 1, 0, 0))


def test_empty_days_means_every_day_and_no_window_means_all_day():
    slide = make_slide(1, schedule=Schedule(enabled=True))
    assert is_eligible_now(slide, datetime(2024, 1, 7, 3, 33))


def test_overnight_property_at_start_end_and_excluded_midpoint():
    slide = make_slide(1, schedule=Schedule(enabled=True, time_start="22:00", time_end="02:00"))
    assert is_eligible_now(slide, datetime(2024, 1, 5, 22, 0))
    assert is_eligible_now(slide, datetime(2024, 1, 6, 2, 0))
    assert not is_eligible_now(slide, datetime(2024, 1, 6, 12, 0))


def test_complete_time_slots_win_over_legacy_pair():
    schedule = Schedule(
        enabled=True,
        time_start="08:00",
        time_end="09:00",
        time_slots=(TimeWindow("12:00", "13:00"), TimeWindow("18:00", "")),
    )
    assert resolve_windows(schedule) == [TimeWindow("12:00", "13:00")]


def test_legacy_pair_used_when_no_slot_is_complete():
    schedule = Schedule(enabled=True, time_start="08:00", time_end="09:00", time_slots=(TimeWindow("", "10:00"),))
    assert resolve_windows(schedule) == [TimeWindow("08:00", "09:00")]


def test_time_slots_are_or_combined():
    schedule = Schedule(enabled=True, time_slots=(TimeWindow("08:00", "09:00"), TimeWindow("17:00", "18:00")))
    playlist = Playlist(id=1, name="Rush hours", schedule=schedule)
    assert is_playlist_scheduled_now(playlist, datetime(2024, 1, 5, 8, 30))
    assert is_playlist_scheduled_now(playlist, datetime(2024, 1, 5, 17, 30))
    assert not is_playlist_scheduled_now(playlist, datetime(2024, 1, 5, 12, 0))


def test_overnight_playlist_scenario():
    playlist = Playlist(
        id=7,
        name="Late night",
        schedule=Schedule(enabled=True, days_of_week=(5, 6), time_start="22:00", time_end="02:00"),
    )
    assert is_playlist_scheduled_now(playlist, datetime(2024, 1, 5, 23, 30))
    assert is_playlist_scheduled_now(playlist, datetime(2024, 1, 6, 1, 0))
    assert not is_playlist_scheduled_now(playlist, datetime(2024, 1, 6, 3, 0))


def test_playlist_without_scheduling_never_wins_scheduled_tier():
    playlist = Playlist(id=1, name="Manual", is_active=True)
    assert not is_playlist_scheduled_now(playlist, datetime(2024, 1, 5, 12, 0))
