"""Key/value backends for local persistence."""

import sqlite3
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class BaseKeyValueStore(ABC):
    """String keys mapped to UTF-8 text values."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        pass

    @abstractmethod
    def set_many(self, items: Dict[str, str]):
        """Write several keys as one batch."""
        pass

    @abstractmethod
    def delete(self, key: str):
        pass

    def set(self, key: str, value: str):
        self.set_many({key: value})


class InMemoryKeyValueStore(BaseKeyValueStore):
    """Process-local dictionary backend, used by tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_many(self, items: Dict[str, str]):
        self._data.update(items)

    def delete(self, key: str):
        self._data.pop(key, None)


class SQLiteKeyValueStore(BaseKeyValueStore):
    """SQLite-backed key/value table."""

    def __init__(self, db_path: str = "data/assistant.db"):
        """
        Initialize SQLite key/value store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
        conn.close()
        logger.info(f"Key/value store initialized at {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        conn.close()
        return row[0] if row else None

    def set_many(self, items: Dict[str, str]):
        conn = self._get_connection()
        try:
            # One transaction, so mirrored keys land together
            with conn:
                conn.executemany(
                    """
                    INSERT INTO kv (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    list(items.items())
                )
        finally:
            conn.close()

    def delete(self, key: str):
        conn = self._get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        finally:
            conn.close()
