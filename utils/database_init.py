import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS screens (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL,
        title TEXT NOT NULL,
        subtitle TEXT,
        body TEXT,
        image_path TEXT,
        priority INTEGER NOT NULL DEFAULT 1,
        duration_seconds INTEGER NOT NULL DEFAULT 10,
        is_active INTEGER NOT NULL DEFAULT 1,
        sort_order INTEGER NOT NULL DEFAULT 0,
        scheduling_enabled INTEGER NOT NULL DEFAULT 0,
        start_at TEXT,
        end_at TEXT,
        days_of_week TEXT,
        time_start TEXT,
        time_end TEXT,
        is_adopted INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS playlists (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 0,
        is_default INTEGER NOT NULL DEFAULT 0,
        sort_order INTEGER NOT NULL DEFAULT 0,
        scheduling_enabled INTEGER NOT NULL DEFAULT 0,
        start_at TEXT,
        end_at TEXT,
        days_of_week TEXT,
        time_start TEXT,
        time_end TEXT,
        time_slots TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS playlist_screens (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        playlist_id INTEGER NOT NULL REFERENCES playlists(id) ON DELETE CASCADE,
        screen_id INTEGER NOT NULL REFERENCES screens(id) ON DELETE CASCADE,
        sort_order INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS polls (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        question TEXT NOT NULL,
        poll_type TEXT NOT NULL DEFAULT 'custom',
        status TEXT NOT NULL DEFAULT 'draft',
        options TEXT,
        cat_count INTEGER NOT NULL DEFAULT 2,
        sort_order INTEGER NOT NULL DEFAULT 0,
        last_shown_at TEXT,
        total_votes INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS poll_votes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        poll_id INTEGER NOT NULL REFERENCES polls(id) ON DELETE CASCADE,
        option_id TEXT NOT NULL,
        voter_fingerprint TEXT NOT NULL DEFAULT '',
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        image_url TEXT,
        bio TEXT,
        status TEXT NOT NULL DEFAULT 'available',
        sort_order INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS guest_sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        guest_name TEXT NOT NULL,
        guest_count INTEGER NOT NULL DEFAULT 1,
        duration INTEGER NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        check_in_at TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        reminder_shown INTEGER NOT NULL DEFAULT 0,
        checked_out_at TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_playlist_screens_playlist ON playlist_screens(playlist_id)",
    "CREATE INDEX IF NOT EXISTS idx_poll_votes_poll ON poll_votes(poll_id)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_poll_votes_voter ON poll_votes(poll_id, voter_fingerprint) "
    "WHERE voter_fingerprint <> ''",
    "CREATE INDEX IF NOT EXISTS idx_guest_sessions_expires ON guest_sessions(expires_at)",
)


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite signage database using the DATABASE_DIR environment variable.

    - The database file is located at: <DATABASE_DIR>/app.db
    - DATABASE_DIR is required. A RuntimeError is raised if it is missing
      or invalid (not a directory and cannot be created).
    - On the first call to `ensure_database()` for a given instance:
        * If `reset_on_start` is set, any existing database file is deleted.
        * The signage tables are created if they do not exist yet.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, reset_on_start: bool = False) -> None:
        env_dir = os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        db_dir = Path(env_dir).expanduser()

        # If the path exists but is not a directory, that's a configuration error.
        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={env_dir!r} points to a file, not a directory "
                f"({db_dir}). Please set DATABASE_DIR to a directory path."
            )

        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {db_dir}"
            ) from exc

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"
        self.reset_on_start = reset_on_start

        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the signage schema exists at `self.db_path`.

        On first call this will optionally delete the old file, then create
        every table and index. Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        if self.reset_on_start and self.db_path.exists():
            try:
                self.db_path.unlink()
            except OSError as exc:
                raise RuntimeError(
                    f"Failed to delete existing database at {self.db_path}"
                ) from exc

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    for statement in SCHEMA_STATEMENTS:
                        await db.execute(statement)
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The schema is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            await conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        finally:
            await conn.close()
