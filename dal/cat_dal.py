"""Async Data Access Layer for the cats table."""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.screen_record import AdoptableCat
from utils.database_init import AsyncDatabaseInitializer

CAT_STATUS_AVAILABLE = "available"
CAT_STATUS_ADOPTED = "adopted"


class CatDAL:
    """Data access layer for CAT records."""

    _COLUMNS = ("id", "name", "image_url", "bio", "sort_order")
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_cat(
        self,
        name: str,
        image_url: Optional[str] = None,
        bio: Optional[str] = None,
        status: str = CAT_STATUS_AVAILABLE,
        sort_order: int = 0,
    ) -> int:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "INSERT INTO cats (name, image_url, bio, status, sort_order) VALUES (?, ?, ?, ?, ?)",
                (name, image_url, bio, status, sort_order),
            )
            await conn.commit()
            return cur.lastrowid

    async def list_adoptable_cats(self) -> List[AdoptableCat]:
        """Return cats still available for adoption, in admin order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM cats WHERE status = ? ORDER BY sort_order, id",
                (CAT_STATUS_AVAILABLE,),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> AdoptableCat:
        return AdoptableCat(
            id=row[0],
            display_name=row[1],
            image_url=row[2],
            bio=row[3],
            sort_order=row[4],
        )
