"""SQLite cache for raw news provider responses.

Values are stored as JSON text keyed by a provider-chosen string such as
``newsapi_AAPL_2024-05-01``. Freshness is decided in SQL against the row's
UTC ``created_at``, so a cache with ``ttl_hours=None`` never expires.
"""

import json
import sqlite3
from pathlib import Path
from typing import Any, Optional

from src.core.logger import logger

_SCHEMA = """
CREATE TABLE IF NOT EXISTS api_cache (
    cache_key TEXT PRIMARY KEY,
    response_data TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


class SQLiteCache:
    """JSON key-value store owned by the news providers, with optional expiry."""

    def __init__(self, db_path: str = "output/.cache.db", ttl_hours: Optional[float] = None) -> None:
        """
        Args:
            db_path (str): SQLite file; parent directories are created.
            ttl_hours (float | None): Maximum entry age; ``None`` keeps entries forever.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.ttl_hours = ttl_hours
        with self._connect() as conn:
            conn.execute(_SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, check_same_thread=False)

    def _age_clause(self) -> tuple[str, tuple]:
        if self.ttl_hours is None:
            return "", ()
        return " AND created_at >= datetime('now', ?)", (f"-{float(self.ttl_hours)} hours",)

    def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for ``key``, or None when missing, stale or unreadable."""
        clause, params = self._age_clause()
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT response_data FROM api_cache WHERE cache_key = ?" + clause,
                    (key, *params),
                ).fetchone()
            if row is not None:
                logger.debug(f"SQLiteCache: hit {key}")
                return json.loads(row[0])
        except sqlite3.Error as e:
            logger.error(f"SQLiteCache: read failed for {key}: {e}")
        except json.JSONDecodeError as e:
            logger.error(f"SQLiteCache: corrupt entry {key}: {e}")

        logger.debug(f"SQLiteCache: miss {key}")
        return None

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` as JSON, replacing any previous entry and resetting its age.

        Values that are not JSON-serialisable are logged and skipped.
        """
        try:
            payload = json.dumps(value)
            with self._connect() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO api_cache (cache_key, response_data, created_at) "
                    "VALUES (?, ?, CURRENT_TIMESTAMP)",
                    (key, payload),
                )
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error(f"SQLiteCache: write failed for {key}: {e}")

    def purge_expired(self) -> int:
        """Delete stale entries and return how many were removed."""
        if self.ttl_hours is None:
            return 0
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM api_cache WHERE created_at < datetime('now', ?)",
                    (f"-{float(self.ttl_hours)} hours",),
                )
            removed = cursor.rowcount
        except sqlite3.Error as e:
            logger.error(f"SQLiteCache: purge failed: {e}")
            return 0
        if removed:
            logger.info(f"SQLiteCache: purged {removed} expired entries")
        return removed
