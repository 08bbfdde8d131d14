"""Per-session reminder state for the guest overlay.

The tracker is fed by two periodic reads (sessions nearing expiry, recent
check-ins) and advanced by a one-second tick. It decides which reminder and
welcome cards are visible, how urgent each reminder is, and fires each chime
once.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Set

from dal.guest_session_dal import RECENT_CHECK_IN_SECONDS
from models.guest_session import (
	GuestSession,
	ReminderPhase,
	ReminderView,
	ScheduledReminder,
	WelcomeView,
)
from services.reminders.chime import (
	ChimeNotifier,
	reminder_event_id,
	scheduled_event_id,
	welcome_event_id,
)

LOGGER = logging.getLogger(__name__)

EXPIRED_RETENTION_SECONDS = 30
URGENT_SECONDS = 2 * 60
LOOKAHEAD_SECONDS = 5 * 60
WELCOME_VISIBLE_SECONDS = 20
WELCOME_CLEANUP_SECONDS = 25
WELCOMED_ID_LIMIT = 100
SCHEDULED_REMINDER_MINUTES = 5

SCHEDULED_REMINDERS = (
	ScheduledReminder(
		id="mini-meow-25",
		minute=25,
		session_type="Mini Meow",
		session_duration="30 min",
		message="Mini Meow sessions ending soon!",
	),
	ScheduledReminder(
		id="sessions-55",
		minute=55,
		session_type="Full Purr & Mini Meow",
		session_duration="ending",
		message="Sessions ending soon!",
	),
)


def active_scheduled_reminders(now: datetime) -> List[ScheduledReminder]:
	"""Return the fixed reminders whose five-minute window covers `now`."""
	return [r for r in SCHEDULED_REMINDERS if 0 <= now.minute - r.minute < SCHEDULED_REMINDER_MINUTES]


class ReminderTracker:
	"""Track reminder and welcome visibility for every known guest session.

	Expired sessions stay visible for `retention_seconds` counted from the
	moment a tick first saw them expired. That detection instant is capped at
	one tick after `expires_at`, so the skew introduced by polling never
	exceeds a single tick.
	"""

	def __init__(
		self,
		chime: Optional[ChimeNotifier] = None,
		retention_seconds: float = EXPIRED_RETENTION_SECONDS,
		tick_seconds: float = 1,
		urgent_seconds: float = URGENT_SECONDS,
		lookahead_seconds: float = LOOKAHEAD_SECONDS,
		welcome_visible_seconds: float = WELCOME_VISIBLE_SECONDS,
		welcome_cleanup_seconds: float = WELCOME_CLEANUP_SECONDS,
		welcomed_id_limit: int = WELCOMED_ID_LIMIT,
		check_in_window_seconds: float = RECENT_CHECK_IN_SECONDS,
	) -> None:
		self.chime = chime or ChimeNotifier()
		self.retention = timedelta(seconds=retention_seconds)
		self.tick_interval = timedelta(seconds=tick_seconds)
		self.urgent = timedelta(seconds=urgent_seconds)
		self.lookahead = timedelta(seconds=lookahead_seconds)
		self.welcome_visible = timedelta(seconds=welcome_visible_seconds)
		self.welcome_cleanup = timedelta(seconds=welcome_cleanup_seconds)
		self.welcomed_id_limit = welcomed_id_limit
		self.check_in_window = timedelta(seconds=check_in_window_seconds)

		self._sessions: Dict[int, GuestSession] = {}
		self._expired_detected_at: Dict[int, datetime] = {}
		self._welcomes: List[WelcomeView] = []
		self._welcomed_ids: Dict[int, datetime] = {}
		self._scheduled_ids: Set[str] = set()

	# -- feeds -------------------------------------------------------------

	def ingest_reminder_feed(self, sessions: Iterable[GuestSession], now: datetime) -> None:
		"""Replace the known sessions with a fresh "needs reminder" read.

		Sessions missing from the feed because they expired are kept until
		their retention closes; sessions missing for any other reason (checked
		out) are dropped.
		"""
		feed = {session.id: session for session in sessions}
		retained = {
			sid: session
			for sid, session in self._sessions.items()
			if sid not in feed and session.expires_at <= now
		}

		for session in feed.values():
			if session.expires_at > now:
				# Extended sessions start over.
				self._expired_detected_at.pop(session.id, None)
			self.chime.play(reminder_event_id(session.id))

		self._sessions = {**retained, **feed}

	def ingest_check_ins(self, sessions: Iterable[GuestSession], now: datetime) -> List[WelcomeView]:
		"""Register recently checked-in sessions; each id is welcomed once.

		Returns:
			The welcome cards created by this call.
		"""
		created: List[WelcomeView] = []
		for session in sessions:
			if session.id in self._welcomed_ids:
				LOGGER.debug("Skipping %s (id=%s), already welcomed", session.guest_name, session.id)
				continue
			self._welcomed_ids[session.id] = session.check_in_at
			welcome = WelcomeView(session=session, appeared_at=now)
			self._welcomes.append(welcome)
			created.append(welcome)
			self.chime.play(welcome_event_id(session.id))
			LOGGER.info("Welcome %s (id=%s)", session.guest_name, session.id)
		return created

	# -- tick --------------------------------------------------------------

	def tick(self, now: datetime) -> None:
		"""Record expiry detections, drop hidden entries and fire scheduled chimes."""
		for session in self._sessions.values():
			if session.expires_at <= now and session.id not in self._expired_detected_at:
				self._expired_detected_at[session.id] = now

		hidden = [sid for sid, s in self._sessions.items() if self.phase_for(s, now) is ReminderPhase.HIDDEN]
		for sid in hidden:
			del self._sessions[sid]

		stale_after = self.retention * 2
		self._expired_detected_at = {
			sid: detected
			for sid, detected in self._expired_detected_at.items()
			if now - detected < stale_after
		}

		self._clean_up_welcomes(now)
		self._check_scheduled_reminders(now)

	def _clean_up_welcomes(self, now: datetime) -> None:
		before = len(self._welcomes)
		self._welcomes = [w for w in self._welcomes if now - w.appeared_at < self.welcome_cleanup]
		if before != len(self._welcomes):
			LOGGER.debug("Cleaned up %d expired welcomes", before - len(self._welcomes))

		if len(self._welcomed_ids) > self.welcomed_id_limit:
			LOGGER.info("Pruning welcomed ids (was %d)", len(self._welcomed_ids))
			# The check-in feed keeps returning a session until it leaves the window.
			cutoff = now - self.check_in_window
			self._welcomed_ids = {
				sid: checked_in for sid, checked_in in self._welcomed_ids.items() if checked_in >= cutoff
			}

	def _check_scheduled_reminders(self, now: datetime) -> None:
		current = {scheduled_event_id(r.id, now.hour) for r in active_scheduled_reminders(now)}
		for event_id in current - self._scheduled_ids:
			self.chime.play(event_id)
		self._scheduled_ids = current

	# -- queries -----------------------------------------------------------

	def phase_for(self, session: GuestSession, now: datetime) -> ReminderPhase:
		remaining = session.expires_at - now
		if remaining > timedelta(0):
			if remaining <= self.urgent:
				return ReminderPhase.URGENT
			if remaining <= self.lookahead:
				return ReminderPhase.NEARING_EXPIRY
			return ReminderPhase.NOT_YET_EXPIRING

		anchor = session.expires_at + self.tick_interval
		detected = self._expired_detected_at.get(session.id)
		if detected is not None and detected < anchor:
			anchor = detected
		if now - anchor < self.retention:
			return ReminderPhase.EXPIRED_VISIBLE
		return ReminderPhase.HIDDEN

	def visible_reminders(self, now: datetime) -> List[ReminderView]:
		"""Active reminders by soonest expiry, then expired-but-visible ones."""
		active: List[ReminderView] = []
		expired: List[ReminderView] = []
		for session in sorted(self._sessions.values(), key=lambda s: (s.expires_at, s.id)):
			phase = self.phase_for(session, now)
			if phase in (ReminderPhase.HIDDEN, ReminderPhase.NOT_YET_EXPIRING):
				continue
			view = ReminderView(
				session=session,
				urgency=phase,
				is_expired_visible=phase is ReminderPhase.EXPIRED_VISIBLE,
				remaining_seconds=max(0.0, (session.expires_at - now).total_seconds()),
			)
			(expired if view.is_expired_visible else active).append(view)
		return active + expired

	def visible_welcomes(self, now: datetime) -> List[WelcomeView]:
		return sorted(
			(w for w in self._welcomes if now - w.appeared_at < self.welcome_visible),
			key=lambda w: w.appeared_at,
		)

	@property
	def welcomed_ids(self) -> Set[int]:
		return set(self._welcomed_ids)

	def reset(self) -> None:
		"""Forget all state, including which chimes already played."""
		self._sessions.clear()
		self._expired_detected_at.clear()
		self._welcomes.clear()
		self._welcomed_ids.clear()
		self._scheduled_ids.clear()
		self.chime.reset()
