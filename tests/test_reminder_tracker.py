"""Tests for the guest session reminder lifecycle."""

from datetime import datetime, timedelta

from conftest import make_session
from models.guest_session import ReminderPhase
from services.reminders.chime import ChimeNotifier
from services.reminders.reminder_tracker import ReminderTracker, active_scheduled_reminders

NOON = datetime(2024, 1, 5, 12, 0, 0)


def _visible_ids(tracker, now):
    return [view.session.id for view in tracker.visible_reminders(now)]


def _run_ticks(tracker, start, end):
    now = start
    while now <= end:
        tracker.tick(now)
        now += timedelta(seconds=1)


def test_phase_from_remaining_time():
    tracker = ReminderTracker()
    session = make_session(1, NOON)
    assert tracker.phase_for(session, NOON - timedelta(minutes=10)) is ReminderPhase.NOT_YET_EXPIRING
    assert tracker.phase_for(session, NOON - timedelta(minutes=4)) is ReminderPhase.NEARING_EXPIRY
    assert tracker.phase_for(session, NOON - timedelta(minutes=2)) is ReminderPhase.URGENT
    assert tracker.phase_for(session, NOON) is ReminderPhase.EXPIRED_VISIBLE


def test_guest_reminder_lifecycle_scenario():
    tracker = ReminderTracker()
    session = make_session(1, NOON)
    tracker.ingest_reminder_feed([session], NOON - timedelta(minutes=3))

    # Feed goes quiet once the session is past; the tick at 12:00:02 is the first after expiry.
    tracker.ingest_reminder_feed([], NOON + timedelta(seconds=1))
    tracker.tick(NOON + timedelta(seconds=2))
    assert _visible_ids(tracker, NOON + timedelta(seconds=2)) == [1]
    assert tracker.visible_reminders(NOON + timedelta(seconds=2))[0].is_expired_visible

    tracker.tick(NOON + timedelta(seconds=31))
    assert _visible_ids(tracker, NOON + timedelta(seconds=31)) == []


def test_retention_is_thirty_seconds_from_detection_with_regular_ticks():
    tracker = ReminderTracker()
    tracker.ingest_reminder_feed([make_session(1, NOON)], NOON - timedelta(minutes=1))
    _run_ticks(tracker, NOON - timedelta(seconds=2), NOON + timedelta(seconds=29))
    assert _visible_ids(tracker, NOON + timedelta(seconds=29)) == [1]

    tracker.tick(NOON + timedelta(seconds=30))
    assert _visible_ids(tracker, NOON + timedelta(seconds=30)) == []


def test_checked_out_session_is_dropped_from_the_feed():
    tracker = ReminderTracker()
    now = NOON - timedelta(minutes=3)
    tracker.ingest_reminder_feed([make_session(1, NOON)], now)
    tracker.ingest_reminder_feed([], now + timedelta(seconds=5))
    assert _visible_ids(tracker, now + timedelta(seconds=5)) == []


def test_extended_session_starts_over():
    tracker = ReminderTracker()
    tracker.ingest_reminder_feed([make_session(1, NOON)], NOON - timedelta(minutes=1))
    tracker.tick(NOON + timedelta(seconds=1))
    extended = make_session(1, NOON + timedelta(minutes=4), status="extended")
    tracker.ingest_reminder_feed([extended], NOON + timedelta(seconds=5))

    views = tracker.visible_reminders(NOON + timedelta(seconds=5))
    assert [v.urgency for v in views] == [ReminderPhase.NEARING_EXPIRY]


def test_active_reminders_sorted_before_expired_ones():
    tracker = ReminderTracker()
    first = make_session(1, NOON)
    later = make_session(2, NOON + timedelta(minutes=4))
    sooner = make_session(3, NOON + timedelta(minutes=1))
    tracker.ingest_reminder_feed([first, later, sooner], NOON - timedelta(seconds=30))
    tracker.ingest_reminder_feed([later, sooner], NOON + timedelta(seconds=1))
    tracker.tick(NOON + timedelta(seconds=1))

    views = tracker.visible_reminders(NOON + timedelta(seconds=2))
    assert [v.session.id for v in views] == [3, 2, 1]
    assert [v.is_expired_visible for v in views] == [False, False, True]
    assert views[0].urgency is ReminderPhase.URGENT


def test_reminder_chime_fires_once_per_session():
    played = []
    tracker = ReminderTracker(chime=ChimeNotifier(sink=played.append))
    session = make_session(7, NOON + timedelta(minutes=10))
    for offset in range(0, 20, 5):
        now = NOON + timedelta(minutes=7, seconds=offset)
        tracker.ingest_reminder_feed([session], now)
        tracker.tick(now)
    assert played == ["guest-7"]


def test_welcome_shown_once_and_for_twenty_seconds():
    played = []
    tracker = ReminderTracker(chime=ChimeNotifier(sink=played.append))
    session = make_session(3, NOON + timedelta(minutes=30))

    assert len(tracker.ingest_check_ins([session], NOON)) == 1
    assert tracker.ingest_check_ins([session], NOON + timedelta(seconds=5)) == []
    assert [w.session.id for w in tracker.visible_welcomes(NOON + timedelta(seconds=19))] == [3]
    assert tracker.visible_welcomes(NOON + timedelta(seconds=20)) == []
    assert played == ["welcome-3"]


def test_welcomes_cleaned_and_welcomed_ids_pruned():
    tracker = ReminderTracker(welcomed_id_limit=3)
    sessions = [make_session(i, NOON + timedelta(minutes=30)) for i in range(1, 5)]
    tracker.ingest_check_ins(sessions[:3], NOON)
    tracker.ingest_check_ins(sessions[3:], NOON + timedelta(seconds=10))

    tracker.tick(NOON + timedelta(seconds=26))
    # Only the welcome for session 4 is still within the cleanup window.
    assert [w.session.id for w in tracker.visible_welcomes(NOON + timedelta(seconds=26))] == [4]
    # All four checked in at noon, so the check-in feed can still return them.
    assert tracker.welcomed_ids == {1, 2, 3, 4}

    tracker.tick(NOON + timedelta(seconds=61))
    assert tracker.welcomed_ids == set()


def test_recent_check_in_is_not_welcomed_twice_after_pruning():
    played = []
    tracker = ReminderTracker(chime=ChimeNotifier(sink=played.append), welcomed_id_limit=3)
    sessions = [make_session(i, NOON + timedelta(minutes=30)) for i in range(1, 5)]
    tracker.ingest_check_ins(sessions, NOON)

    tracker.tick(NOON + timedelta(seconds=26))
    assert tracker.ingest_check_ins(sessions, NOON + timedelta(seconds=30)) == []
    assert tracker.visible_welcomes(NOON + timedelta(seconds=30)) == []
    assert sorted(played) == ["welcome-1", "welcome-2", "welcome-3", "welcome-4"]


def test_scheduled_reminders_active_for_five_minutes():
    assert active_scheduled_reminders(datetime(2024, 1, 5, 14, 24)) == []
    assert [r.id for r in active_scheduled_reminders(datetime(2024, 1, 5, 14, 25))] == ["mini-meow-25"]
    assert [r.id for r in active_scheduled_reminders(datetime(2024, 1, 5, 14, 29))] == ["mini-meow-25"]
    assert active_scheduled_reminders(datetime(2024, 1, 5, 14, 30)) == []
    assert [r.id for r in active_scheduled_reminders(datetime(2024, 1, 5, 14, 57))] == ["sessions-55"]


def test_scheduled_chime_once_per_hour():
    played = []
    tracker = ReminderTracker(chime=ChimeNotifier(sink=played.append))
    for minute in (25, 26, 27):
        tracker.tick(datetime(2024, 1, 5, 14, minute))
    tracker.tick(datetime(2024, 1, 5, 15, 25))
    assert played == ["scheduled-mini-meow-25-14", "scheduled-mini-meow-25-15"]


def test_reset_forgets_everything():
    played = []
    tracker = ReminderTracker(chime=ChimeNotifier(sink=played.append))
    session = make_session(1, NOON)
    tracker.ingest_reminder_feed([session], NOON - timedelta(minutes=1))
    tracker.reset()
    assert tracker.visible_reminders(NOON - timedelta(minutes=1)) == []
    tracker.ingest_reminder_feed([session], NOON - timedelta(minutes=1))
    assert played == ["guest-1", "guest-1"]
