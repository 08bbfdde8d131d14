"""Async Data Access Layer for the guest_sessions table.

Timestamps are ISO-8601 text with seconds precision, so range filters are
plain string comparisons.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from models.guest_session import (
	SESSION_STATUS_ACTIVE,
	SESSION_STATUS_COMPLETED,
	SESSION_STATUS_EXTENDED,
	GuestSession,
)
from utils.database_init import AsyncDatabaseInitializer
from utils.time_utils import from_db_timestamp, to_db_timestamp

RECENT_CHECK_IN_SECONDS = 60


class GuestSessionDAL:
	"""Data access layer for GUEST_SESSION records."""

	_COLUMNS = (
		"id",
		"guest_name",
		"guest_count",
		"duration",
		"status",
		"check_in_at",
		"expires_at",
		"reminder_shown",
		"checked_out_at",
	)
	_COLUMN_LIST = ", ".join(_COLUMNS)
	_OPEN_STATUSES = (SESSION_STATUS_ACTIVE, SESSION_STATUS_EXTENDED)

	def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
		self._db = db_initializer

	async def create_session(
		self,
		guest_name: str,
		duration: int,
		check_in_at: datetime,
		guest_count: int = 1,
	) -> int:
		"""Check a guest in for `duration` minutes and return the session id."""
		expires_at = check_in_at + timedelta(minutes=duration)
		async with self._db.connection() as conn:
			cur = await conn.execute(
				"INSERT INTO guest_sessions (guest_name, guest_count, duration, status, check_in_at, expires_at) "
				"VALUES (?, ?, ?, ?, ?, ?)",
				(
					guest_name,
					guest_count,
					duration,
					SESSION_STATUS_ACTIVE,
					to_db_timestamp(check_in_at),
					to_db_timestamp(expires_at),
				),
			)
			await conn.commit()
			return cur.lastrowid

	async def get_session(self, session_id: int) -> Optional[GuestSession]:
		async with self._db.connection() as conn:
			cur = await conn.execute(
				f"SELECT {self._COLUMN_LIST} FROM guest_sessions WHERE id = ?",
				(session_id,),
			)
			row = await cur.fetchone()
			return self._row_to_record(row) if row else None

	async def list_needing_reminder(self, now: datetime, lookahead_minutes: int) -> List[GuestSession]:
		"""Open sessions expiring between `now` and `now + lookahead_minutes`, soonest first."""
		async with self._db.connection() as conn:
			cur = await conn.execute(
				f"SELECT {self._COLUMN_LIST} FROM guest_sessions "
				"WHERE status IN (?, ?) AND expires_at >= ? AND expires_at <= ? "
				"ORDER BY expires_at, id",
				(
					*self._OPEN_STATUSES,
					to_db_timestamp(now),
					to_db_timestamp(now + timedelta(minutes=lookahead_minutes)),
				),
			)
			rows = await cur.fetchall()
			return [self._row_to_record(r) for r in rows]

	async def list_recently_checked_in(
		self,
		now: datetime,
		window_seconds: int = RECENT_CHECK_IN_SECONDS,
	) -> List[GuestSession]:
		"""Open sessions checked in during the last `window_seconds`."""
		async with self._db.connection() as conn:
			cur = await conn.execute(
				f"SELECT {self._COLUMN_LIST} FROM guest_sessions "
				"WHERE status IN (?, ?) AND check_in_at >= ? AND check_in_at <= ? "
				"ORDER BY check_in_at, id",
				(
					*self._OPEN_STATUSES,
					to_db_timestamp(now - timedelta(seconds=window_seconds)),
					to_db_timestamp(now),
				),
			)
			rows = await cur.fetchall()
			return [self._row_to_record(r) for r in rows]

	async def extend_session(self, session_id: int, minutes: int) -> Optional[GuestSession]:
		"""Push `expires_at` back by `minutes` and clear the reminder flag.

		Returns the updated session, or None if it does not exist.
		"""
		session = await self.get_session(session_id)
		if session is None:
			return None
		expires_at = session.expires_at + timedelta(minutes=minutes)
		async with self._db.connection() as conn:
			await conn.execute(
				"UPDATE guest_sessions SET expires_at = ?, duration = duration + ?, status = ?, reminder_shown = 0 "
				"WHERE id = ?",
				(to_db_timestamp(expires_at), minutes, SESSION_STATUS_EXTENDED, session_id),
			)
			await conn.commit()
		return await self.get_session(session_id)

	async def check_out(self, session_id: int, checked_out_at: datetime) -> bool:
		async with self._db.connection() as conn:
			await conn.execute(
				"UPDATE guest_sessions SET status = ?, checked_out_at = ? WHERE id = ?",
				(SESSION_STATUS_COMPLETED, to_db_timestamp(checked_out_at), session_id),
			)
			await conn.commit()
			cur = await conn.execute("SELECT changes()")
			changed = await cur.fetchone()
			return bool(changed and changed[0] > 0)

	async def mark_reminder_shown(self, session_id: int) -> bool:
		async with self._db.connection() as conn:
			await conn.execute("UPDATE guest_sessions SET reminder_shown = 1 WHERE id = ?", (session_id,))
			await conn.commit()
			cur = await conn.execute("SELECT changes()")
			changed = await cur.fetchone()
			return bool(changed and changed[0] > 0)

	@staticmethod
	def _row_to_record(row: Sequence[object]) -> GuestSession:
		return GuestSession(
			id=row[0],
			guest_name=row[1],
			guest_count=row[2],
			duration=row[3],
			status=row[4],
			check_in_at=from_db_timestamp(row[5]),
			expires_at=from_db_timestamp(row[6]),
			reminder_shown=bool(row[7]),
			checked_out_at=from_db_timestamp(row[8]),
		)
