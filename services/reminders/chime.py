"""Exactly-once chime notifications keyed by logical event id."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Set

LOGGER = logging.getLogger(__name__)

ChimeSink = Callable[[str], None]


def reminder_event_id(session_id: int) -> str:
	return f"guest-{session_id}"


def welcome_event_id(session_id: int) -> str:
	return f"welcome-{session_id}"


def scheduled_event_id(reminder_id: str, hour: int) -> str:
	return f"scheduled-{reminder_id}-{hour}"


class ChimeNotifier:
	"""Fire a chime side effect at most once per event id.

	The played-ids set lives as long as this object; `reset()` clears it.
	The sink is whatever actually makes a sound (or pushes an event to the
	renderer); by default the chime is only logged.
	"""

	def __init__(self, sink: Optional[ChimeSink] = None) -> None:
		self._sink = sink
		self._played: Set[str] = set()

	def play(self, event_id: str) -> bool:
		"""Play the chime for `event_id` unless it already played. Returns True if played."""
		if event_id in self._played:
			LOGGER.debug("Chime already played for %s, skipping", event_id)
			return False

		self._played.add(event_id)
		LOGGER.info("Playing chime for %s", event_id)
		if self._sink is not None:
			try:
				self._sink(event_id)
			except Exception as exc:
				# A failed sound must not stop the reminder overlay.
				LOGGER.warning("Chime sink failed for %s: %s", event_id, exc)
		return True

	def has_played(self, event_id: str) -> bool:
		return event_id in self._played

	def reset(self) -> None:
		"""Forget every played id."""
		self._played.clear()
