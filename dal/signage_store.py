"""Store facade consumed by the display engine.

`SignageStore` composes the table-level DAL classes and exposes the reads the
engine depends on plus the writes used by admin tooling and tests. Database
failures surface as `StoreUnavailableError` so callers can fall back to
their last good snapshot.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import AsyncIterator, List, Optional, Sequence

import aiosqlite

from dal.cat_dal import CatDAL
from dal.guest_session_dal import GuestSessionDAL
from dal.playlist_dal import PlaylistDAL
from dal.poll_dal import PollDAL
from dal.screen_dal import ScreenDAL
from dal.store_errors import StoreUnavailableError
from models.guest_session import GuestSession
from models.poll_record import POLL_TYPE_CUSTOM, POLL_TYPE_TEMPLATE, PollRecord, PollVote
from models.screen_record import AdoptableCat, Playlist, Slide
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def _translate_errors(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except (aiosqlite.Error, OSError) as exc:
        LOGGER.warning("Store operation %s failed: %s", operation, exc)
        raise StoreUnavailableError(f"{operation} failed: {exc}") from exc


class SignageStore:
    """Async store backed by the signage SQLite database."""

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self.screens = ScreenDAL(db_initializer)
        self.playlists = PlaylistDAL(db_initializer)
        self.polls = PollDAL(db_initializer)
        self.cats = CatDAL(db_initializer)
        self.guest_sessions = GuestSessionDAL(db_initializer)

    # -- slides and playlists ------------------------------------------------

    async def list_playlists(self) -> List[Playlist]:
        """Return every playlist by sort order with its member slides attached."""
        async with _translate_errors("list_playlists"):
            playlists = await self.playlists.list_playlists()
            result = []
            for playlist in playlists:
                members = await self.screens.list_slides_for_playlist(playlist.id)
                result.append(replace(playlist, slides=tuple(members)))
            return result

    async def list_slides_for_playlist(self, playlist_id: int) -> List[Slide]:
        async with _translate_errors("list_slides_for_playlist"):
            return await self.screens.list_slides_for_playlist(playlist_id)

    async def list_all_active_slides(self) -> List[Slide]:
        async with _translate_errors("list_all_active_slides"):
            return await self.screens.list_all_active_slides()

    async def create_slide(self, slide: Slide) -> int:
        async with _translate_errors("create_slide"):
            return await self.screens.create_screen(slide)

    async def create_playlist(self, playlist: Playlist, screen_ids: Sequence[int] = ()) -> int:
        async with _translate_errors("create_playlist"):
            playlist_id = await self.playlists.create_playlist(playlist)
            if screen_ids:
                await self.playlists.set_screens(playlist_id, screen_ids)
            return playlist_id

    async def set_playlist_slides(self, playlist_id: int, screen_ids: Sequence[int]) -> None:
        async with _translate_errors("set_playlist_slides"):
            await self.playlists.set_screens(playlist_id, screen_ids)

    async def activate_playlist(self, playlist_id: int, is_active: bool = True) -> bool:
        async with _translate_errors("activate_playlist"):
            return await self.playlists.set_active(playlist_id, is_active)

    # -- polls -----------------------------------------------------------------

    async def get_poll(self, poll_id: int) -> Optional[PollRecord]:
        async with _translate_errors("get_poll"):
            return await self.polls.get_poll(poll_id)

    async def list_active_template_polls(self) -> List[PollRecord]:
        async with _translate_errors("list_active_template_polls"):
            return await self.polls.list_active_polls(POLL_TYPE_TEMPLATE)

    async def list_active_custom_polls(self) -> List[PollRecord]:
        async with _translate_errors("list_active_custom_polls"):
            return await self.polls.list_active_polls(POLL_TYPE_CUSTOM)

    async def record_poll_shown(self, poll_id: int, shown_at: datetime) -> None:
        async with _translate_errors("record_poll_shown"):
            await self.polls.record_poll_shown(poll_id, shown_at)

    async def list_votes_for_poll(self, poll_id: int) -> List[PollVote]:
        async with _translate_errors("list_votes_for_poll"):
            return await self.polls.list_votes_for_poll(poll_id)

    async def has_voted(self, poll_id: int, voter_fingerprint: str) -> bool:
        async with _translate_errors("has_voted"):
            return await self.polls.has_voted(poll_id, voter_fingerprint)

    async def add_vote(self, vote: PollVote) -> bool:
        """Record a vote; False if the voter already voted on this poll."""
        async with _translate_errors("add_vote"):
            return await self.polls.add_vote(vote) is not None

    async def delete_votes_for_poll(self, poll_id: int) -> int:
        async with _translate_errors("delete_votes_for_poll"):
            return await self.polls.delete_votes_for_poll(poll_id)

    async def create_poll(self, record: PollRecord) -> int:
        async with _translate_errors("create_poll"):
            return await self.polls.create_poll(record)

    # -- adoptable cats --------------------------------------------------------

    async def list_adoptable_entities(self) -> List[AdoptableCat]:
        async with _translate_errors("list_adoptable_entities"):
            return await self.cats.list_adoptable_cats()

    async def create_cat(self, name: str, image_url: Optional[str] = None, **fields) -> int:
        async with _translate_errors("create_cat"):
            return await self.cats.create_cat(name, image_url=image_url, **fields)

    # -- guest sessions --------------------------------------------------------

    async def list_guest_sessions_needing_reminder(self, now: datetime, lookahead_minutes: int) -> List[GuestSession]:
        async with _translate_errors("list_guest_sessions_needing_reminder"):
            return await self.guest_sessions.list_needing_reminder(now, lookahead_minutes)

    async def list_recently_checked_in_sessions(self, now: datetime) -> List[GuestSession]:
        async with _translate_errors("list_recently_checked_in_sessions"):
            return await self.guest_sessions.list_recently_checked_in(now)

    async def create_guest_session(
        self,
        guest_name: str,
        duration: int,
        check_in_at: datetime,
        guest_count: int = 1,
    ) -> int:
        async with _translate_errors("create_guest_session"):
            return await self.guest_sessions.create_session(guest_name, duration, check_in_at, guest_count)

    async def extend_guest_session(self, session_id: int, minutes: int) -> Optional[GuestSession]:
        async with _translate_errors("extend_guest_session"):
            return await self.guest_sessions.extend_session(session_id, minutes)

    async def check_out_guest_session(self, session_id: int, checked_out_at: datetime) -> bool:
        async with _translate_errors("check_out_guest_session"):
            return await self.guest_sessions.check_out(session_id, checked_out_at)

    async def mark_reminder_shown(self, session_id: int) -> bool:
        async with _translate_errors("mark_reminder_shown"):
            return await self.guest_sessions.mark_reminder_shown(session_id)
