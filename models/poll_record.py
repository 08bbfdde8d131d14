from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

POLL_TYPE_TEMPLATE = "template"
POLL_TYPE_CUSTOM = "custom"

POLL_STATUS_DRAFT = "draft"
POLL_STATUS_ACTIVE = "active"
POLL_STATUS_ENDED = "ended"


@dataclass(frozen=True)
class PollOption:
    """A displayable poll option. Template options use ids like `cat-12`."""

    id: str
    text: str
    image_url: Optional[str] = None


@dataclass(frozen=True)
class PollRecord:
    """In-memory representation of a row in the polls table.

    Attributes:
        id: Primary key.
        question: Question text shown on the TV.
        poll_type: `template` (options resolved from adoptable cats) or `custom`.
        status: `draft`, `active` or `ended`.
        options: Stored options for custom polls, already decoded.
        cat_count: Target number of cats for template polls.
        sort_order: Admin ordering.
        last_shown_at: When the rotator last selected this poll.
        total_votes: Denormalised vote counter.
    """

    id: int
    question: str
    poll_type: str = POLL_TYPE_CUSTOM
    status: str = POLL_STATUS_DRAFT
    options: tuple[PollOption, ...] = ()
    cat_count: int = 2
    sort_order: int = 0
    last_shown_at: Optional[datetime] = None
    total_votes: int = 0


@dataclass(frozen=True)
class PollVote:
    """A single vote row."""

    poll_id: int
    option_id: str
    voter_fingerprint: str = ""


@dataclass(frozen=True)
class PollDisplay:
    """The poll currently shown on screen together with its resolved options."""

    poll: PollRecord
    options: List[PollOption] = field(default_factory=list)


@dataclass(frozen=True)
class PollOptionResult:
    """A poll option annotated with its tally."""

    id: str
    text: str
    image_url: Optional[str]
    vote_count: int
    percentage: int


@dataclass(frozen=True)
class PollResults:
    """Results view for one poll."""

    poll: PollRecord
    total_votes: int
    options: List[PollOptionResult]


@dataclass(frozen=True)
class VoteOutcome:
    success: bool
    already_voted: bool = False
