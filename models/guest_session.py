"""Guest session domain models for the reminder overlay."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

SESSION_STATUS_ACTIVE = "active"
SESSION_STATUS_EXTENDED = "extended"
SESSION_STATUS_COMPLETED = "completed"

SESSION_DURATIONS = (15, 30, 60)


@dataclass(frozen=True)
class GuestSession:
	"""Snapshot of a guest check-in."""

	id: int
	guest_name: str
	guest_count: int
	duration: int
	status: str
	check_in_at: datetime
	expires_at: datetime
	reminder_shown: bool = False
	checked_out_at: Optional[datetime] = None


class ReminderPhase(str, enum.Enum):
	NOT_YET_EXPIRING = "not-yet-expiring"
	NEARING_EXPIRY = "nearing-expiry"
	URGENT = "urgent"
	EXPIRED_VISIBLE = "expired-visible"
	HIDDEN = "hidden"


@dataclass(frozen=True)
class ReminderView:
	"""One entry of the rendered reminder list."""

	session: GuestSession
	urgency: ReminderPhase
	is_expired_visible: bool
	remaining_seconds: float


@dataclass(frozen=True)
class WelcomeView:
	"""A welcome card for a freshly checked-in session."""

	session: GuestSession
	appeared_at: datetime


@dataclass(frozen=True)
class ScheduledReminder:
	"""A fixed, per-hour reminder not tied to any guest."""

	id: str
	minute: int
	session_type: str
	session_duration: str
	message: str
