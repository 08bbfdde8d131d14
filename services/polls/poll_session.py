"""Quarter-hour session keys and the per-bucket poll cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, NamedTuple, Optional

from models.poll_record import PollOption

SESSION_MINUTES = 15
# Minutes 0-11 of each quarter collect votes; 12-14 show the results.
VOTING_MINUTES = 12

PHASE_VOTING = "voting"
PHASE_RESULTS = "results"


class PollSessionKey(NamedTuple):
    year: int
    month: int
    day: int
    hour: int
    quarter: int


def session_key(now: datetime) -> PollSessionKey:
    """Quantise `now` to its 15-minute bucket."""
    quarter = (now.minute // SESSION_MINUTES) * SESSION_MINUTES
    return PollSessionKey(now.year, now.month, now.day, now.hour, quarter)


def poll_phase(now: datetime) -> str:
    """Return whether the current quarter is collecting votes or showing results."""
    if now.minute % SESSION_MINUTES < VOTING_MINUTES:
        return PHASE_VOTING
    return PHASE_RESULTS


@dataclass(frozen=True)
class PollSessionEntry:
    key: PollSessionKey
    poll_id: int
    options: List[PollOption] = field(default_factory=list)


class PollSessionCache:
    """Holds the selection made for the current bucket, if any."""

    def __init__(self) -> None:
        self._entry: Optional[PollSessionEntry] = None

    def get(self, key: PollSessionKey) -> Optional[PollSessionEntry]:
        """Return the cached entry when it belongs to `key`."""
        if self._entry is not None and self._entry.key == key:
            return self._entry
        return None

    def put(self, entry: PollSessionEntry) -> None:
        self._entry = entry

    def invalidate(self) -> None:
        self._entry = None
