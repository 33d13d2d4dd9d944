"""SQLite key-value store for the trainer's local state."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# Named slots
VERB_BANK = "verb_bank"
STUDENTS = "students"
ATTEMPTS = "attempts"
ACTIVE_STUDENT = "active_student"

SLOTS = (VERB_BANK, STUDENTS, ATTEMPTS, ACTIVE_STUDENT)


class Database:
    """Stores JSON values by key in a single SQLite table.

    load() and save() never raise: unreadable data falls back to the
    caller's default and write failures are logged.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with self._connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                );
            """)

    @contextmanager
    def _connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def load(self, key: str, fallback: Any = None) -> Any:
        """Load the value stored under key, or fallback if missing or unparseable."""
        try:
            with self._connection() as conn:
                row = conn.execute(
                    "SELECT value FROM slots WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.warning("Could not read slot %r: %s", key, e)
            return fallback

        if row is None:
            return fallback

        try:
            return json.loads(row["value"])
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("Slot %r holds unreadable data, using fallback: %s", key, e)
            return fallback

    def save(self, key: str, value: Any) -> None:
        """Store value under key as JSON."""
        try:
            payload = json.dumps(value, ensure_ascii=False)
            with self._connection() as conn:
                conn.execute("""
                    INSERT INTO slots (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """, (key, payload, datetime.now().isoformat()))
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error("Could not save slot %r: %s", key, e)
