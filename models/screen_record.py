from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

# Content type tags stored in the `type` column of the screens table.
SCREEN_TYPES = (
    "SNAP_AND_PURR",
    "EVENT",
    "TODAY_AT_CATFE",
    "MEMBERSHIP",
    "REMINDER",
    "ADOPTION",
    "ADOPTION_SHOWCASE",
    "ADOPTION_COUNTER",
    "THANK_YOU",
    "POLL",
)


@dataclass(frozen=True)
class TimeWindow:
    """A single HH:MM window. `end < start` denotes an overnight window."""

    start: str
    end: str


@dataclass(frozen=True)
class Schedule:
    """Scheduling attributes shared by slides and playlists.

    Attributes:
        enabled: Gate for every other attribute; when False the schedule is ignored.
        start_at: Absolute lower date bound (inclusive).
        end_at: Absolute upper date bound (inclusive).
        days_of_week: Weekday numbers with 0=Sunday. Empty means every day.
        time_start: Legacy single-window start, HH:MM.
        time_end: Legacy single-window end, HH:MM.
        time_slots: Additional windows (playlists only), OR-combined.
    """

    enabled: bool = False
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    days_of_week: tuple[int, ...] = ()
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    time_slots: tuple[TimeWindow, ...] = ()


@dataclass(frozen=True)
class Slide:
    """In-memory snapshot of a row in the screens table."""

    id: int
    type: str
    title: str
    priority: int = 1
    duration_seconds: int = 10
    is_active: bool = True
    sort_order: int = 0
    schedule: Schedule = field(default_factory=Schedule)
    subtitle: Optional[str] = None
    body: Optional[str] = None
    image_path: Optional[str] = None
    is_adopted: bool = False


@dataclass(frozen=True)
class Playlist:
    """A schedulable, ordered collection of slides.

    `slides` is populated by the store with the member slides in playlist
    order; membership rows referencing deleted slides are skipped.
    """

    id: int
    name: str
    is_active: bool = False
    is_default: bool = False
    sort_order: int = 0
    schedule: Schedule = field(default_factory=Schedule)
    description: Optional[str] = None
    slides: tuple[Slide, ...] = ()


@dataclass(frozen=True)
class AdoptableCat:
    """An adoptable cat as exposed to poll options and dynamic slides."""

    id: int
    display_name: str
    image_url: Optional[str] = None
    bio: Optional[str] = None
    sort_order: int = 0


@dataclass(frozen=True)
class PlaylistResolution:
    """Outcome of playlist resolution: the slides plus which tier produced them."""

    slides: List[Slide]
    reason: str
    playlist_id: Optional[int] = None
    playlist_name: Optional[str] = None
