"""SQLite-backed log of stock news searches.

Writes are best-effort: a failing store is logged and otherwise ignored, and
the engine never reads snapshots back.
"""

import json
import sqlite3
from pathlib import Path

from src.core.logger import logger
from src.models.datatypes import StockNewsReport


class SearchLogStore:
    """Append-only table of news search snapshots."""

    def __init__(self, db_path: str = "output/search_log.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, check_same_thread=False)

    def _init_db(self) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS search_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    stock_symbol TEXT NOT NULL,
                    company_name TEXT,
                    stock_price REAL,
                    average_sentiment REAL,
                    articles TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

    def record(self, report: StockNewsReport) -> bool:
        """Store a snapshot of ``report``. Returns False when the write failed."""
        try:
            articles = json.dumps([a.to_dict() for a in report.articles])
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO search_log
                        (stock_symbol, company_name, stock_price, average_sentiment, articles)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (report.symbol, report.company_name, report.current_price,
                     report.average_sentiment, articles),
                )
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.warning(f"SearchLogStore: could not record search for {report.symbol}: {e}")
            return False
        return True

