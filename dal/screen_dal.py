"""Async Data Access Layer for the screens table.

Provides ScreenDAL with the reads the display engine needs and the writes
used by admin tooling, compatible with
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

from typing import List, Sequence

from dal.schedule_columns import SCHEDULE_COLUMNS, schedule_from_row, schedule_to_params
from models.screen_record import Slide
from utils.database_init import AsyncDatabaseInitializer


class ScreenDAL:
    """Data access layer for screen (slide) records."""

    _COLUMNS = (
        "id",
        "type",
        "title",
        "subtitle",
        "body",
        "image_path",
        "priority",
        "duration_seconds",
        "is_active",
        "sort_order",
        "is_adopted",
    ) + SCHEDULE_COLUMNS
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])
    _QUALIFIED_COLUMNS = ", ".join(f"s.{col}" for col in _COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_screen(self, slide: Slide) -> int:
        """Insert a screen row and return its id. `slide.id` is ignored."""
        placeholders = ", ".join("?" for _ in self._COLUMNS[1:])
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO screens ({self._INSERT_COLUMNS}) VALUES ({placeholders})",
                (
                    slide.type,
                    slide.title,
                    slide.subtitle,
                    slide.body,
                    slide.image_path,
                    slide.priority,
                    slide.duration_seconds,
                    int(slide.is_active),
                    slide.sort_order,
                    int(slide.is_adopted),
                    *schedule_to_params(slide.schedule),
                ),
            )
            await conn.commit()
            return cur.lastrowid

    async def list_all_active_slides(self) -> List[Slide]:
        """Return every active screen ordered by sort order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM screens WHERE is_active = 1 ORDER BY sort_order, id"
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def list_slides_for_playlist(self, playlist_id: int) -> List[Slide]:
        """Return member screens of a playlist in playlist order.

        Membership rows whose screen no longer exists are skipped by the join.
        """
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"""
                SELECT {self._QUALIFIED_COLUMNS}
                FROM playlist_screens ps
                JOIN screens s ON s.id = ps.screen_id
                WHERE ps.playlist_id = ?
                ORDER BY ps.sort_order, ps.id
                """,
                (playlist_id,),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def set_active(self, screen_id: int, is_active: bool) -> bool:
        """Toggle a screen's active flag. Returns True if a row was changed."""
        async with self._db.connection() as conn:
            await conn.execute(
                "UPDATE screens SET is_active = ? WHERE id = ?",
                (int(is_active), screen_id),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> Slide:
        """Convert a DB row tuple into a Slide."""
        return Slide(
            id=row[0],
            type=row[1],
            title=row[2],
            subtitle=row[3],
            body=row[4],
            image_path=row[5],
            priority=row[6],
            duration_seconds=row[7],
            is_active=bool(row[8]),
            sort_order=row[9],
            is_adopted=bool(row[10]),
            schedule=schedule_from_row(row[11:17]),
        )
