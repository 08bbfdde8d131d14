"""Select the poll shown on the TV for the current quarter-hour.

A poll stays fixed for a whole 15-minute bucket so votes aggregate against a
single question, then the least recently shown active poll takes over.
Template polls get their options from a fresh shuffle of adoptable cats,
chosen once per bucket and cached.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Sequence

from models.poll_record import PollDisplay, PollOption, PollRecord
from models.screen_record import AdoptableCat
from services.polls.poll_session import PollSessionCache, PollSessionEntry, session_key

LOGGER = logging.getLogger(__name__)

TEMPLATE_OPTION_COUNT = 4


def least_recently_shown(polls: Sequence[PollRecord]) -> List[PollRecord]:
    """Order polls never shown first, then by `last_shown_at` ascending.

    `sorted` is stable, so ties keep the order the store returned.
    """
    return sorted(
        polls,
        key=lambda p: (p.last_shown_at is not None, p.last_shown_at or datetime.min),
    )


def cat_option(cat: AdoptableCat) -> PollOption:
    return PollOption(id=f"cat-{cat.id}", text=cat.display_name, image_url=cat.image_url)


class PollRotator:
    """Owns the bucket cache and performs least-recently-shown selection.

    Args:
        store: Object exposing `get_poll`, `list_active_template_polls`,
            `list_active_custom_polls`, `list_adoptable_entities` and
            `record_poll_shown`.
        cache: Optional injected cache; a private one is created otherwise.
        rng: Random source used to shuffle adoptable cats.
    """

    def __init__(
        self,
        store,
        cache: Optional[PollSessionCache] = None,
        rng: Optional[random.Random] = None,
        option_count: int = TEMPLATE_OPTION_COUNT,
    ) -> None:
        self._store = store
        self.cache = cache or PollSessionCache()
        self._rng = rng or random.Random()
        self.option_count = option_count
        self._lock = asyncio.Lock()

    def invalidate(self) -> None:
        """Drop the cached selection so the next call selects again."""
        self.cache.invalidate()

    def cached_options(self, poll_id: int, now: datetime) -> Optional[List[PollOption]]:
        """Return the options bound to `poll_id` in the current bucket, if cached."""
        entry = self.cache.get(session_key(now))
        if entry is None or entry.poll_id != poll_id:
            return None
        return list(entry.options)

    async def get_current_poll_for_display(self, now: Optional[datetime] = None) -> Optional[PollDisplay]:
        """Return the poll and options for the bucket containing `now`.

        Returns None when there is no active poll of either type.
        """
        now = now or datetime.now()
        async with self._lock:
            key = session_key(now)
            entry = self.cache.get(key)
            if entry is not None:
                # Re-read only to refresh vote totals; the selection stays.
                poll = await self._store.get_poll(entry.poll_id)
                if poll is not None:
                    return PollDisplay(poll=poll, options=list(entry.options))
                LOGGER.info("Cached poll %s disappeared; selecting again", entry.poll_id)

            selected = await self._select()
            if selected is None:
                return None

            poll, options = selected
            self.cache.put(PollSessionEntry(key=key, poll_id=poll.id, options=options))
            await self._store.record_poll_shown(poll.id, now)
            LOGGER.info("Poll %s selected for bucket %s with %d options", poll.id, key, len(options))
            return PollDisplay(poll=replace(poll, last_shown_at=now), options=list(options))

    async def _select(self) -> Optional[tuple[PollRecord, List[PollOption]]]:
        templates = least_recently_shown(await self._store.list_active_template_polls())
        if templates:
            poll = templates[0]
            return poll, await self._template_options()

        customs = least_recently_shown(await self._store.list_active_custom_polls())
        if not customs:
            return None
        poll = customs[0]
        return poll, list(poll.options)

    async def _template_options(self) -> List[PollOption]:
        cats = list(await self._store.list_adoptable_entities())
        if len(cats) < self.option_count:
            LOGGER.warning(
                "Only %d adoptable cats available, %d wanted for a template poll",
                len(cats),
                self.option_count,
            )
        self._rng.shuffle(cats)
        return [cat_option(cat) for cat in cats[: self.option_count]]
