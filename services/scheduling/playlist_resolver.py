"""Four-tier playlist resolution.

Resolution order:
    1. The first playlist (by sort order) whose schedule matches `now`.
    2. The manually activated playlist.
    3. The default playlist.
    4. Every active slide in the catalog.

A tier only wins if it yields at least one active slide; otherwise the next
tier is tried, so the screen never goes blank because a scheduled playlist is
momentarily empty.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from models.screen_record import Playlist, PlaylistResolution, Slide
from services.scheduling.time_window import is_playlist_scheduled_now

LOGGER = logging.getLogger(__name__)

REASON_SCHEDULED = "scheduled"
REASON_MANUAL = "manual"
REASON_DEFAULT = "default"
REASON_FALLBACK = "fallback"


def _active_members(playlist: Playlist) -> List[Slide]:
    return [slide for slide in playlist.slides if slide.is_active]


def _first_manual(playlists: Sequence[Playlist]) -> Optional[Playlist]:
    manual = [p for p in playlists if p.is_active]
    if len(manual) > 1:
        LOGGER.warning(
            "Store returned %d manually active playlists; using %r (id=%s)",
            len(manual),
            manual[0].name,
            manual[0].id,
        )
    return manual[0] if manual else None


def resolve_active_slides(
    playlists: Sequence[Playlist],
    now: datetime,
    catalog: Iterable[Slide] = (),
) -> PlaylistResolution:
    """Pick the effective slide list for `now`.

    Args:
        playlists: All playlists sorted by `sort_order`, with `slides` populated.
        now: Wall-clock instant being resolved.
        catalog: Every slide known to the store, used by the global fallback.

    Returns:
        A `PlaylistResolution`; its `slides` are empty only when no tier,
        including the global fallback, has an active slide.
    """
    candidates: List[tuple[str, Optional[Playlist]]] = []

    scheduled = next((p for p in playlists if is_playlist_scheduled_now(p, now)), None)
    if scheduled is not None:
        candidates.append((REASON_SCHEDULED, scheduled))

    candidates.append((REASON_MANUAL, _first_manual(playlists)))
    candidates.append((REASON_DEFAULT, next((p for p in playlists if p.is_default), None)))

    for reason, playlist in candidates:
        if playlist is None:
            continue
        active = _active_members(playlist)
        if active:
            return PlaylistResolution(
                slides=active,
                reason=reason,
                playlist_id=playlist.id,
                playlist_name=playlist.name,
            )
        LOGGER.debug("Playlist %r (%s tier) has no active slides, falling through", playlist.name, reason)

    return PlaylistResolution(
        slides=[slide for slide in catalog if slide.is_active],
        reason=REASON_FALLBACK,
        playlist_name="All Active Screens",
    )


class PlaylistResolver:
    """Fetch playlists from the store and resolve the slides for `now`.

    The store must expose `list_playlists()` (already sorted, with member
    slides attached) and `list_all_active_slides()`.
    """

    def __init__(self, store) -> None:
        self._store = store

    async def resolve(self, now: datetime) -> PlaylistResolution:
        playlists = await self._store.list_playlists()
        catalog = await self._store.list_all_active_slides()
        return resolve_active_slides(playlists, now, catalog)
