"""Tests for exactly-once chimes."""

from services.reminders.chime import (
    ChimeNotifier,
    reminder_event_id,
    scheduled_event_id,
    welcome_event_id,
)


def test_event_ids():
    assert reminder_event_id(4) == "guest-4"
    assert welcome_event_id(4) == "welcome-4"
    assert scheduled_event_id("sessions-55", 13) == "scheduled-sessions-55-13"


def test_plays_once_per_id():
    played = []
    chime = ChimeNotifier(sink=played.append)
    assert chime.play("guest-1")
    assert not chime.play("guest-1")
    assert chime.play("guest-2")
    assert played == ["guest-1", "guest-2"]
    assert chime.has_played("guest-1")


def test_failing_sink_still_marks_played(caplog):
    def broken(_event_id):
        raise OSError("no audio device")

    chime = ChimeNotifier(sink=broken)
    assert chime.play("welcome-1")
    assert not chime.play("welcome-1")
    assert "Chime sink failed" in caplog.text


def test_reset_allows_replay():
    played = []
    chime = ChimeNotifier(sink=played.append)
    chime.play("guest-1")
    chime.reset()
    assert not chime.has_played("guest-1")
    chime.play("guest-1")
    assert played == ["guest-1", "guest-1"]
