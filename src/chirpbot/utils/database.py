"""
SQLite database manager for the chirp bot.

Handles:
- Mates (chatters the bot has seen) and their arrival sound timestamps
- One-time achievements per mate
- The chat message archive
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone, timedelta
from pathlib import Path
from typing import Generator, Optional, Any

from chirpbot.utils.logging import get_logger

logger = get_logger(__name__)


class DuplicateAchievementError(Exception):
    """Raised when a mate already holds the achievement being inserted."""

    def __init__(self, achiever_id: int, kind: str) -> None:
        super().__init__(f"Mate {achiever_id} already has achievement {kind}")
        self.achiever_id = achiever_id
        self.kind = kind


def _to_db_timestamp(value: datetime) -> str:
    """Store timestamps as naive UTC, matching CURRENT_TIMESTAMP."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%d %H:%M:%S")


def _from_db_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparsable timestamp in database: %r", value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DatabaseManager:
    """
    SQLite database manager.

    Every public method opens its own connection, so a manager can be
    shared between the event loop and worker threads.
    """

    def __init__(self, db_path: str = "data/chirpbot.db") -> None:
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()
        logger.info("Database initialized at %s", self.db_path)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a database connection with automatic cleanup.

        Commits on success, rolls back and re-raises on any error.

        Yields:
            sqlite3.Connection: Database connection
        """
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            # Constraint violations are reported by the caller
            conn.rollback()
            logger.debug("Constraint violation: %s", e)
            raise
        except Exception as e:
            conn.rollback()
            logger.error("Database error: %s", e)
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database tables."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS mate (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT UNIQUE NOT NULL,
                    last_played TIMESTAMP
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS achievement (
                    achiever INTEGER NOT NULL,
                    achievement TEXT NOT NULL,
                    timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    data TEXT,
                    FOREIGN KEY (achiever) REFERENCES mate(id),
                    UNIQUE(achiever, achievement)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS message (
                    twitch_user_id TEXT NOT NULL,
                    timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    username TEXT,
                    text TEXT,
                    kind TEXT
                )
            """)

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_message_user ON message(twitch_user_id)"
            )

            logger.debug("Database tables initialized")

    # ==================== Mate Methods ====================

    def resolve_or_create_mate(self, name: str) -> int:
        """
        Get the id of a mate, creating the row on first sight.

        New mates get a ``last_played`` a year in the past so their
        first arrival always plays.

        Args:
            name: Twitch username

        Returns:
            int: The mate's id
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO mate (name, last_played)
                VALUES (?, datetime('now', '-1 year'))
                ON CONFLICT(name) DO NOTHING
                """,
                (name,)
            )
            cursor.execute("SELECT id FROM mate WHERE name = ?", (name,))
            return int(cursor.fetchone()["id"])

    def get_mate(self, name: str) -> dict[str, Any]:
        """
        Get a mate record, creating it if needed.

        Returns:
            dict: ``id``, ``name`` and ``last_played`` (aware UTC datetime)
        """
        mate_id = self.resolve_or_create_mate(name)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM mate WHERE id = ?", (mate_id,))
            mate = dict(cursor.fetchone())
        mate["last_played"] = _from_db_timestamp(mate["last_played"])
        return mate

    def set_last_played(self, name: str, when: Optional[datetime] = None) -> None:
        """Record that a mate's arrival sound was just played."""
        when = when or datetime.now(timezone.utc)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE mate SET last_played = ? WHERE name = ?",
                (_to_db_timestamp(when), name)
            )

    # ==================== Achievement Methods ====================

    def insert_achievement(
        self,
        achiever_id: int,
        kind: str,
        timestamp: Optional[datetime] = None,
        data: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Insert an achievement for a mate.

        Args:
            achiever_id: Mate id
            kind: Achievement kind
            timestamp: When it was earned (default: now)
            data: Optional JSON-serialisable details

        Raises:
            DuplicateAchievementError: The mate already has this achievement
            sqlite3.Error: Any other storage failure
        """
        timestamp = timestamp or datetime.now(timezone.utc)
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO achievement (achiever, achievement, timestamp, data)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        achiever_id,
                        kind,
                        _to_db_timestamp(timestamp),
                        json.dumps(data) if data is not None else None,
                    )
                )
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e).upper():
                raise DuplicateAchievementError(achiever_id, kind) from e
            raise

    def get_achievements(self, name: str) -> list[dict[str, Any]]:
        """Get every achievement a mate holds, oldest first."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT a.achievement, a.timestamp, a.data
                FROM achievement a
                JOIN mate m ON m.id = a.achiever
                WHERE m.name = ?
                ORDER BY a.timestamp ASC, a.rowid ASC
                """,
                (name,)
            )
            rows = [dict(row) for row in cursor.fetchall()]
        for row in rows:
            row["data"] = json.loads(row["data"]) if row["data"] else None
        return rows

    def count_achievements(self, kind: str) -> int:
        """Count how many mates hold an achievement."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) FROM achievement WHERE achievement = ?",
                (kind,)
            )
            return int(cursor.fetchone()[0])

    # ==================== Message Archive ====================

    def save_message(
        self,
        twitch_user_id: str,
        username: str,
        text: str,
        kind: str = "chat",
        timestamp: Optional[datetime] = None
    ) -> None:
        """Archive a chat message."""
        timestamp = timestamp or datetime.now(timezone.utc)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO message (twitch_user_id, timestamp, username, text, kind)
                VALUES (?, ?, ?, ?, ?)
                """,
                (twitch_user_id, _to_db_timestamp(timestamp), username, text, kind)
            )

    def get_recent_messages(
        self,
        limit: int = 50,
        username: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """
        Get the most recent archived messages, newest first.

        Args:
            limit: Maximum number of messages
            username: Only messages from this chatter
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            if username:
                cursor.execute(
                    """
                    SELECT * FROM message WHERE username = ?
                    ORDER BY timestamp DESC, rowid DESC LIMIT ?
                    """,
                    (username, limit)
                )
            else:
                cursor.execute(
                    "SELECT * FROM message ORDER BY timestamp DESC, rowid DESC LIMIT ?",
                    (limit,)
                )
            return [dict(row) for row in cursor.fetchall()]


# Global database instance
_db: Optional[DatabaseManager] = None


def get_database(db_path: Optional[str] = None) -> DatabaseManager:
    """
    Get the global database manager instance.

    The first call decides the path; later calls return the same manager.
    """
    global _db
    if _db is None:
        _db = DatabaseManager(db_path) if db_path else DatabaseManager()
    return _db
