"""Async Data Access Layer for polls and poll votes.

Stored options are decoded here, so callers only ever see typed
`PollOption` tuples even for legacy double-encoded rows.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

import aiosqlite

from models.poll_record import POLL_STATUS_ACTIVE, PollRecord, PollVote
from utils.database_init import AsyncDatabaseInitializer
from utils.option_decoding import decode_poll_options, encode_poll_options
from utils.time_utils import from_db_timestamp, to_db_timestamp

LOGGER = logging.getLogger(__name__)


class PollDAL:
    """Data access layer for POLL and POLL_VOTE records."""

    _COLUMNS = (
        "id",
        "question",
        "poll_type",
        "status",
        "options",
        "cat_count",
        "sort_order",
        "last_shown_at",
        "total_votes",
    )
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    # Never-shown polls first, then oldest showing; ties keep admin order.
    _ROTATION_ORDER = "last_shown_at IS NOT NULL, last_shown_at ASC, sort_order, id"

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_poll(self, record: PollRecord) -> int:
        """Insert a poll row and return the new id."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO polls ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.question,
                    record.poll_type,
                    record.status,
                    encode_poll_options(list(record.options)),
                    record.cat_count,
                    record.sort_order,
                    to_db_timestamp(record.last_shown_at),
                    record.total_votes,
                ),
            )
            await conn.commit()
            return cur.lastrowid

    async def get_poll(self, poll_id: int) -> Optional[PollRecord]:
        """Return PollRecord for `poll_id`, or None if not found."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM polls WHERE id = ?",
                (poll_id,),
            )
            row = await cur.fetchone()
            return self._row_to_record(row) if row else None

    async def list_active_polls(self, poll_type: str) -> List[PollRecord]:
        """Return active polls of `poll_type` in least-recently-shown order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM polls WHERE status = ? AND poll_type = ? "
                f"ORDER BY {self._ROTATION_ORDER}",
                (POLL_STATUS_ACTIVE, poll_type),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def record_poll_shown(self, poll_id: int, shown_at: datetime) -> bool:
        async with self._db.connection() as conn:
            await conn.execute(
                "UPDATE polls SET last_shown_at = ? WHERE id = ?",
                (to_db_timestamp(shown_at), poll_id),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def list_votes_for_poll(self, poll_id: int) -> List[PollVote]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT poll_id, option_id, voter_fingerprint FROM poll_votes WHERE poll_id = ? ORDER BY id",
                (poll_id,),
            )
            rows = await cur.fetchall()
            return [PollVote(poll_id=r[0], option_id=r[1], voter_fingerprint=r[2]) for r in rows]

    async def has_voted(self, poll_id: int, voter_fingerprint: str) -> bool:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM poll_votes WHERE poll_id = ? AND voter_fingerprint = ? LIMIT 1",
                (poll_id, voter_fingerprint),
            )
            return await cur.fetchone() is not None

    async def add_vote(self, vote: PollVote, voted_at: Optional[datetime] = None) -> Optional[int]:
        """Insert a vote and bump the poll's vote counter in one transaction.

        Returns:
            The new vote id, or None if this fingerprint already voted on the poll.
        """
        voted_at = voted_at or datetime.now()
        async with self._db.connection() as conn:
            try:
                cur = await conn.execute(
                    "INSERT INTO poll_votes (poll_id, option_id, voter_fingerprint, created_at) VALUES (?, ?, ?, ?)",
                    (vote.poll_id, vote.option_id, vote.voter_fingerprint, to_db_timestamp(voted_at)),
                )
            except aiosqlite.IntegrityError as exc:
                if "UNIQUE" not in str(exc):
                    raise
                LOGGER.info("Duplicate vote on poll %s ignored", vote.poll_id)
                return None
            await conn.execute(
                "UPDATE polls SET total_votes = total_votes + 1 WHERE id = ?",
                (vote.poll_id,),
            )
            await conn.commit()
            return cur.lastrowid

    async def delete_votes_for_poll(self, poll_id: int) -> int:
        """Delete every vote for `poll_id`, zero its counter and return the count removed."""
        async with self._db.connection() as conn:
            await conn.execute("DELETE FROM poll_votes WHERE poll_id = ?", (poll_id,))
            cur = await conn.execute("SELECT changes()")
            deleted = await cur.fetchone()
            await conn.execute("UPDATE polls SET total_votes = 0 WHERE id = ?", (poll_id,))
            await conn.commit()
            return int(deleted[0]) if deleted and deleted[0] is not None else 0

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> PollRecord:
        """Convert a DB row tuple into a PollRecord."""
        return PollRecord(
            id=row[0],
            question=row[1],
            poll_type=row[2],
            status=row[3],
            options=tuple(decode_poll_options(row[4])),
            cat_count=row[5],
            sort_order=row[6],
            last_shown_at=from_db_timestamp(row[7]),
            total_votes=row[8],
        )
