"""Pytest configuration, fixtures and an in-memory store for engine tests."""

import asyncio
import logging
import random
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

from dal.store_errors import StoreUnavailableError
from models.guest_session import SESSION_STATUS_ACTIVE, GuestSession
from models.poll_record import (
    POLL_STATUS_ACTIVE,
    POLL_TYPE_CUSTOM,
    POLL_TYPE_TEMPLATE,
    PollRecord,
    PollVote,
)
from models.screen_record import AdoptableCat, Playlist, Slide

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


class FakeStore:
    """In-memory stand-in for `SignageStore`.

    Set `fail = True` to make every call raise `StoreUnavailableError`, or
    `delay` to a number of seconds to make every call slow.
    """

    def __init__(self) -> None:
        self.playlists: List[Playlist] = []
        self.slides: List[Slide] = []
        self.polls: Dict[int, PollRecord] = {}
        self.votes: List[PollVote] = []
        self.cats: List[AdoptableCat] = []
        self.reminder_feed: List[GuestSession] = []
        self.check_ins: List[GuestSession] = []
        self.reminders_marked: List[int] = []
        self.shown_calls: List[tuple] = []
        self.fail = False
        self.delay: Optional[float] = None

    async def _gate(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise StoreUnavailableError("store offline")

    async def list_playlists(self) -> List[Playlist]:
        await self._gate()
        return sorted(self.playlists, key=lambda p: p.sort_order)

    async def list_slides_for_playlist(self, playlist_id: int) -> List[Slide]:
        await self._gate()
        playlist = next((p for p in self.playlists if p.id == playlist_id), None)
        return list(playlist.slides) if playlist else []

    async def list_all_active_slides(self) -> List[Slide]:
        await self._gate()
        return [s for s in self.slides if s.is_active]

    async def _active_polls(self, poll_type: str) -> List[PollRecord]:
        await self._gate()
        return [
            p for p in self.polls.values()
            if p.poll_type == poll_type and p.status == POLL_STATUS_ACTIVE
        ]

    async def list_active_template_polls(self) -> List[PollRecord]:
        return await self._active_polls(POLL_TYPE_TEMPLATE)

    async def list_active_custom_polls(self) -> List[PollRecord]:
        return await self._active_polls(POLL_TYPE_CUSTOM)

    async def get_poll(self, poll_id: int) -> Optional[PollRecord]:
        await self._gate()
        return self.polls.get(poll_id)

    async def record_poll_shown(self, poll_id: int, shown_at: datetime) -> None:
        await self._gate()
        self.shown_calls.append((poll_id, shown_at))
        if poll_id in self.polls:
            self.polls[poll_id] = replace(self.polls[poll_id], last_shown_at=shown_at)

    async def list_votes_for_poll(self, poll_id: int) -> List[PollVote]:
        await self._gate()
        return [v for v in self.votes if v.poll_id == poll_id]

    async def has_voted(self, poll_id: int, voter_fingerprint: str) -> bool:
        await self._gate()
        return any(v.poll_id == poll_id and v.voter_fingerprint == voter_fingerprint for v in self.votes)

    async def add_vote(self, vote: PollVote) -> bool:
        await self._gate()
        if any(v.poll_id == vote.poll_id and v.voter_fingerprint == vote.voter_fingerprint for v in self.votes):
            return False
        self.votes.append(vote)
        poll = self.polls[vote.poll_id]
        self.polls[vote.poll_id] = replace(poll, total_votes=poll.total_votes + 1)
        return True

    async def delete_votes_for_poll(self, poll_id: int) -> int:
        await self._gate()
        before = len(self.votes)
        self.votes = [v for v in self.votes if v.poll_id != poll_id]
        if poll_id in self.polls:
            self.polls[poll_id] = replace(self.polls[poll_id], total_votes=0)
        return before - len(self.votes)

    async def list_adoptable_entities(self) -> List[AdoptableCat]:
        await self._gate()
        return list(self.cats)

    async def list_guest_sessions_needing_reminder(self, now: datetime, lookahead_minutes: int) -> List[GuestSession]:
        await self._gate()
        horizon = now + timedelta(minutes=lookahead_minutes)
        return [s for s in self.reminder_feed if now <= s.expires_at <= horizon]

    async def list_recently_checked_in_sessions(self, now: datetime) -> List[GuestSession]:
        await self._gate()
        return list(self.check_ins)

    async def mark_reminder_shown(self, session_id: int) -> bool:
        await self._gate()
        self.reminders_marked.append(session_id)
        return True


def make_slide(slide_id: int, type_: str = "EVENT", priority: int = 1, **fields) -> Slide:
    return Slide(id=slide_id, type=type_, title=f"Slide {slide_id}", priority=priority, **fields)


def make_session(session_id: int, expires_at: datetime, minutes: int = 30, **fields) -> GuestSession:
    fields.setdefault("status", SESSION_STATUS_ACTIVE)
    return GuestSession(
        id=session_id,
        guest_name=f"Guest {session_id}",
        guest_count=2,
        duration=minutes,
        check_in_at=expires_at - timedelta(minutes=minutes),
        expires_at=expires_at,
        **fields,
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def database_dir(tmp_path, monkeypatch):
    """Point DATABASE_DIR at a fresh temporary directory."""
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    return tmp_path
