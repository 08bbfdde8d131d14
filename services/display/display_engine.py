"""The display engine: one object the presentation layer talks to.

`DisplayEngine` wires the resolver, rotation player, poll rotator and reminder
tracker to a store. Every store call is bounded by a timeout; when a read
fails the engine keeps serving its last good snapshot and raises the passive
`is_offline` flag instead of propagating the error.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from dal.store_errors import StoreUnavailableError
from models.guest_session import ReminderView, ScheduledReminder, WelcomeView
from models.poll_record import PollDisplay, PollResults, VoteOutcome
from models.screen_record import PlaylistResolution, Slide
from services.polls.poll_results import PollResultsService
from services.polls.poll_rotator import PollRotator
from services.polls.poll_session import PollSessionCache, poll_phase
from services.reminders.chime import ChimeNotifier
from services.reminders.reminder_tracker import ReminderTracker, active_scheduled_reminders
from services.rotation.rotation_builder import cat_to_virtual_slide
from services.rotation.rotation_player import RotationPlayer
from services.scheduling.playlist_resolver import PlaylistResolver
from services.scheduling.time_window import is_eligible_now
from utils.display_config import DisplayConfig

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

STORE_FAILURES = (asyncio.TimeoutError, StoreUnavailableError)


class DisplayEngine:
    """Compose the decision services around a store.

    Args:
        store: A `SignageStore` or any object with the same async methods.
        config: Timeouts, frequency settings and lookahead.
        rng: Random source shared by the rotation and the poll rotator.
        chime: Notifier used by the reminder tracker.
        poll_cache: Optional injected bucket cache for the poll rotator.
        clock: Returns "now"; injectable for tests.
    """

    def __init__(
        self,
        store,
        config: Optional[DisplayConfig] = None,
        rng: Optional[random.Random] = None,
        chime: Optional[ChimeNotifier] = None,
        poll_cache: Optional[PollSessionCache] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or DisplayConfig()
        self._store = store
        self._clock = clock
        rng = rng or random.Random()

        self.resolver = PlaylistResolver(store)
        self.player = RotationPlayer(
            frequency_slide_type=self.config.frequency_slide_type,
            frequency_n=self.config.frequency_n,
            rng=rng,
        )
        self.poll_rotator = PollRotator(store, cache=poll_cache, rng=rng)
        self.results_service = PollResultsService(store, self.poll_rotator)
        self.reminders = ReminderTracker(
            chime,
            tick_seconds=self.config.tick_seconds,
            lookahead_seconds=self.config.reminder_lookahead_minutes * 60,
        )

        self.is_offline = False
        self.last_error: Optional[str] = None
        self.last_resolution: Optional[PlaylistResolution] = None
        self._last_poll: Optional[PollDisplay] = None

    # -- store access ----------------------------------------------------------

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.config.store_timeout_seconds)

    def _mark_offline(self, operation: str, exc: BaseException) -> None:
        if not self.is_offline:
            LOGGER.warning("Store unavailable during %s, serving last snapshot: %r", operation, exc)
        self.is_offline = True
        self.last_error = f"{operation}: {exc!r}"

    def _mark_online(self) -> None:
        if self.is_offline:
            LOGGER.info("Store reachable again")
        self.is_offline = False
        self.last_error = None

    # -- periodic work ---------------------------------------------------------

    async def refresh_slides(self, now: Optional[datetime] = None) -> bool:
        """Re-resolve playlists and feed the eligible set to the player.

        Returns:
            True if the rotation was rebuilt. On a store failure the current
            rotation is left untouched and False is returned.
        """
        now = now or self._clock()
        try:
            resolution = await self._bounded(self.resolver.resolve(now))
            cats = await self._bounded(self._store.list_adoptable_entities())
        except STORE_FAILURES as exc:
            self._mark_offline("refresh_slides", exc)
            return False
        self._mark_online()

        eligible = [slide for slide in resolution.slides if is_eligible_now(slide, now)]
        dynamic = [cat_to_virtual_slide(cat) for cat in cats]
        if resolution.reason != getattr(self.last_resolution, "reason", None):
            LOGGER.info("Serving %s (%s)", resolution.playlist_name, resolution.reason)
        self.last_resolution = resolution
        return self.player.update(eligible, dynamic)

    async def refresh_guest_feeds(self, now: Optional[datetime] = None) -> bool:
        """Pull the reminder and check-in feeds into the reminder tracker."""
        now = now or self._clock()
        try:
            needing = await self._bounded(
                self._store.list_guest_sessions_needing_reminder(now, self.config.reminder_lookahead_minutes)
            )
            check_ins = await self._bounded(self._store.list_recently_checked_in_sessions(now))
        except STORE_FAILURES as exc:
            self._mark_offline("refresh_guest_feeds", exc)
            return False
        self._mark_online()

        self.reminders.ingest_reminder_feed(needing, now)
        self.reminders.ingest_check_ins(check_ins, now)

        for session in needing:
            if session.reminder_shown:
                continue
            try:
                await self._bounded(self._store.mark_reminder_shown(session.id))
            except STORE_FAILURES as exc:
                self._mark_offline("mark_reminder_shown", exc)
                break
        return True

    async def tick(self, now: Optional[datetime] = None) -> None:
        """Advance countdowns, expiry detection and scheduled chimes."""
        self.reminders.tick(now or self._clock())

    # -- slides ----------------------------------------------------------------

    def current_slide(self) -> Optional[Slide]:
        return self.player.current_slide()

    def advance(self) -> Optional[Slide]:
        return self.player.advance()

    def retreat(self) -> Optional[Slide]:
        return self.player.retreat()

    def serving_info(self) -> Dict[str, Any]:
        """Describe what is playing and why, for the presentation layer."""
        resolution = self.last_resolution
        return {
            "reason": resolution.reason if resolution else None,
            "playlist_id": resolution.playlist_id if resolution else None,
            "playlist_name": resolution.playlist_name if resolution else None,
            "rotation": self.player.rotation,
            "cursor": self.player.cursor,
            "is_offline": self.is_offline,
        }

    # -- polls -----------------------------------------------------------------

    async def current_poll_for_display(self, now: Optional[datetime] = None) -> Optional[PollDisplay]:
        """Return the bucket's poll, or the last one shown while the store is down."""
        now = now or self._clock()
        try:
            display = await self._bounded(self.poll_rotator.get_current_poll_for_display(now))
        except STORE_FAILURES as exc:
            self._mark_offline("current_poll_for_display", exc)
            return self._last_poll
        self._mark_online()
        self._last_poll = display
        return display

    def current_poll_phase(self, now: Optional[datetime] = None) -> str:
        return poll_phase(now or self._clock())

    async def poll_results(self, poll_id: int, now: Optional[datetime] = None) -> Optional[PollResults]:
        return await self._bounded(self.results_service.get_poll_with_results(poll_id, now or self._clock()))

    async def submit_vote(self, poll_id: int, option_id: str, voter_fingerprint: str) -> VoteOutcome:
        return await self._bounded(self.results_service.submit_vote(poll_id, option_id, voter_fingerprint))

    async def reset_poll_votes(self, poll_id: int, now: Optional[datetime] = None) -> None:
        await self._bounded(self.results_service.reset_poll_votes(poll_id, now or self._clock()))

    # -- guest overlay ---------------------------------------------------------

    def visible_reminders(self, now: Optional[datetime] = None) -> List[ReminderView]:
        return self.reminders.visible_reminders(now or self._clock())

    def visible_welcomes(self, now: Optional[datetime] = None) -> List[WelcomeView]:
        return self.reminders.visible_welcomes(now or self._clock())

    def scheduled_reminders(self, now: Optional[datetime] = None) -> List[ScheduledReminder]:
        return active_scheduled_reminders(now or self._clock())
