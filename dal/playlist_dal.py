"""Async Data Access Layer for playlists and their screen membership."""

from __future__ import annotations

from typing import List, Sequence

from dal.schedule_columns import (
    SCHEDULE_COLUMNS,
    encode_time_slots,
    schedule_from_row,
    schedule_to_params,
)
from models.screen_record import Playlist
from utils.database_init import AsyncDatabaseInitializer


class PlaylistDAL:
    """Data access layer for PLAYLIST records.

    Rows are returned without member slides; the store attaches them.
    """

    _COLUMNS = (
        "id",
        "name",
        "description",
        "is_active",
        "is_default",
        "sort_order",
    ) + SCHEDULE_COLUMNS + ("time_slots",)
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_playlist(self, playlist: Playlist) -> int:
        """Insert a playlist row and return its id. Member slides are not written."""
        placeholders = ", ".join("?" for _ in self._COLUMNS[1:])
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO playlists ({self._INSERT_COLUMNS}) VALUES ({placeholders})",
                (
                    playlist.name,
                    playlist.description,
                    int(playlist.is_active),
                    int(playlist.is_default),
                    playlist.sort_order,
                    *schedule_to_params(playlist.schedule),
                    encode_time_slots(playlist.schedule.time_slots),
                ),
            )
            await conn.commit()
            return cur.lastrowid

    async def list_playlists(self) -> List[Playlist]:
        """Return every playlist ordered by sort order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM playlists ORDER BY sort_order, id"
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def set_screens(self, playlist_id: int, screen_ids: Sequence[int]) -> None:
        """Replace a playlist's membership with `screen_ids`, in that order."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM playlist_screens WHERE playlist_id = ?", (playlist_id,))
            await conn.executemany(
                "INSERT INTO playlist_screens (playlist_id, screen_id, sort_order) VALUES (?, ?, ?)",
                [(playlist_id, screen_id, position) for position, screen_id in enumerate(screen_ids)],
            )
            await conn.commit()

    async def set_active(self, playlist_id: int, is_active: bool) -> bool:
        """Manually activate (or deactivate) a playlist.

        Activation is exclusive: every other playlist is deactivated in the
        same transaction. Returns True if the target row exists.
        """
        async with self._db.connection() as conn:
            if is_active:
                await conn.execute("UPDATE playlists SET is_active = 0 WHERE id != ?", (playlist_id,))
            await conn.execute(
                "UPDATE playlists SET is_active = ? WHERE id = ?",
                (int(is_active), playlist_id),
            )
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            await conn.commit()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> Playlist:
        """Convert a DB row tuple into a Playlist."""
        return Playlist(
            id=row[0],
            name=row[1],
            description=row[2],
            is_active=bool(row[3]),
            is_default=bool(row[4]),
            sort_order=row[5],
            schedule=schedule_from_row(row[6:12], time_slots=row[12]),
        )
