"""Vote tallying, voting and vote resets."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from models.poll_record import (
    POLL_TYPE_TEMPLATE,
    PollOption,
    PollOptionResult,
    PollResults,
    PollVote,
    VoteOutcome,
)
from services.polls.poll_rotator import PollRotator

LOGGER = logging.getLogger(__name__)


def _percentage(count: int, total: int) -> int:
    """Round half up, matching how the TV has always displayed percentages."""
    if total <= 0:
        return 0
    return int(count * 100 / total + 0.5)


def tally_votes(options: Sequence[PollOption], votes: Iterable[PollVote]) -> List[PollOptionResult]:
    """Annotate `options` with their vote count and share of all votes.

    Votes for option ids not in `options` still count toward the total.
    """
    votes = list(votes)
    counts = Counter(vote.option_id for vote in votes)
    total = len(votes)
    return [
        PollOptionResult(
            id=option.id,
            text=option.text,
            image_url=option.image_url,
            vote_count=counts.get(option.id, 0),
            percentage=_percentage(counts.get(option.id, 0), total),
        )
        for option in options
    ]


class PollResultsService:
    """Read and reset poll results on top of the store and the rotator."""

    def __init__(self, store, rotator: PollRotator) -> None:
        self._store = store
        self._rotator = rotator

    async def _options_for(self, poll, now: datetime) -> List[PollOption]:
        if poll.poll_type != POLL_TYPE_TEMPLATE:
            return list(poll.options)

        cached = self._rotator.cached_options(poll.id, now)
        if cached is not None:
            return cached

        # No selection yet for this bucket; making one binds the options.
        display = await self._rotator.get_current_poll_for_display(now)
        if display is not None and display.poll.id == poll.id:
            return list(display.options)
        return []

    async def get_poll_with_results(self, poll_id: int, now: Optional[datetime] = None) -> Optional[PollResults]:
        """Return the tallied results for `poll_id`, or None if it does not exist."""
        now = now or datetime.now()
        poll = await self._store.get_poll(poll_id)
        if poll is None:
            return None

        options = await self._options_for(poll, now)
        votes = await self._store.list_votes_for_poll(poll_id)
        return PollResults(poll=poll, total_votes=len(votes), options=tally_votes(options, votes))

    async def submit_vote(self, poll_id: int, option_id: str, voter_fingerprint: str) -> VoteOutcome:
        """Record one vote per fingerprint per poll."""
        if await self._store.has_voted(poll_id, voter_fingerprint):
            return VoteOutcome(success=False, already_voted=True)
        vote = PollVote(poll_id=poll_id, option_id=option_id, voter_fingerprint=voter_fingerprint)
        if not await self._store.add_vote(vote):
            # Lost a race with a concurrent vote from the same fingerprint.
            return VoteOutcome(success=False, already_voted=True)
        return VoteOutcome(success=True)

    async def reset_poll_votes(self, poll_id: int, now: Optional[datetime] = None) -> None:
        """Delete every vote for `poll_id` and push it back in the rotation order."""
        now = now or datetime.now()
        await self._store.delete_votes_for_poll(poll_id)
        await self._store.record_poll_shown(poll_id, now)
        LOGGER.info("Votes reset for poll %s", poll_id)

    async def reset_current_poll_votes(self, now: Optional[datetime] = None) -> Optional[int]:
        """Reset the poll currently on screen. Returns its id, or None if there is none."""
        now = now or datetime.now()
        display = await self._rotator.get_current_poll_for_display(now)
        if display is None:
            return None
        await self.reset_poll_votes(display.poll.id, now)
        return display.poll.id
