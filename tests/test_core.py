"""Tests for config loading, symbol search, caching, retries and the search log."""

import os
import sqlite3

import pytest

from src.core.cache import SQLiteCache
from src.core.config import AppConfig, load_config
from src.core.errors import SymbolNotFoundError
from src.core.retry import with_retries
from src.core.symbols import search_symbols
from src.models.datatypes import StockNewsReport
from src.pipeline.search_log import SearchLogStore


class TestConfig:
    def test_load_config(self, temp_dir):
        path = os.path.join(temp_dir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write("stocks: [aapl, msft]\nnews:\n  max_articles: 5\nsentiment:\n  backend: openai\n")

        config = AppConfig.from_dict(load_config(path), read_env=False)

        assert config.stocks == ["AAPL", "MSFT"]
        assert config.news.max_articles == 5
        assert config.news.lookback_days == 7
        assert config.sentiment.backend == "openai"
        assert config.indicators.sma_periods == [20, 50]
        assert config.openai_api_key is None

    @pytest.mark.parametrize("indicators", [
        {"sma_periods": [20]},
        {"ema_periods": [12, 26, 50]},
        {"rsi_period": 0},
        {"macd_signal": True},
        {"macd_fast": 30},
    ])
    def test_invalid_indicator_settings(self, indicators):
        with pytest.raises(ValueError):
            AppConfig.from_dict({"indicators": indicators}, read_env=False)

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_config(os.path.join(temp_dir, "nope.yaml"))

    def test_empty_file(self, temp_dir):
        path = os.path.join(temp_dir, "empty.yaml")
        open(path, "w").close()
        with pytest.raises(ValueError):
            load_config(path)

    def test_keys_from_env(self, monkeypatch):
        monkeypatch.setenv("NEWS_API_KEY", "abc")
        monkeypatch.setenv("OPENAI_API_KEY", "your_openai_api_key_here")
        monkeypatch.delenv("TWITTER_BEARER_TOKEN", raising=False)

        config = AppConfig.from_dict({})

        assert config.news_api_key == "abc"
        assert config.openai_api_key is None  # placeholder counts as unset
        assert config.twitter_bearer_token is None


class TestSymbolSearch:
    def test_prefix_on_symbol(self):
        symbols = [r["symbol"] for r in search_symbols("MS")]
        assert "MSFT" in symbols

    def test_substring_on_name(self):
        results = search_symbols("micro")
        assert {"MSFT", "AMD"} <= {r["symbol"] for r in results}
        assert all(r["displaySymbol"] == r["symbol"] for r in results)

    def test_empty_query(self):
        assert search_symbols("") == []
        assert search_symbols("   ") == []

    def test_limit(self):
        assert len(search_symbols("a")) == 10
        assert len(search_symbols("a", limit=3)) == 3


class TestSQLiteCache:
    def test_roundtrip(self, temp_dir):
        cache = SQLiteCache(db_path=os.path.join(temp_dir, "c.db"))
        cache.set("k", [{"title": "x"}])
        assert cache.get("k") == [{"title": "x"}]
        assert cache.get("missing") is None

    def test_expired_entry_is_miss(self, temp_dir):
        db = os.path.join(temp_dir, "c.db")
        cache = SQLiteCache(db_path=db, ttl_hours=1)
        cache.set("k", {"a": 1})
        with sqlite3.connect(db) as conn:
            conn.execute("UPDATE api_cache SET created_at = '2000-01-01 00:00:00'")

        assert cache.get("k") is None

    def test_purge_expired(self, temp_dir):
        db = os.path.join(temp_dir, "c.db")
        cache = SQLiteCache(db_path=db, ttl_hours=1)
        cache.set("old", 1)
        cache.set("new", 2)
        with sqlite3.connect(db) as conn:
            conn.execute("UPDATE api_cache SET created_at = '2000-01-01 00:00:00' WHERE cache_key = 'old'")

        assert cache.purge_expired() == 1
        assert cache.get("new") == 2

    def test_no_ttl_never_expires(self, temp_dir):
        db = os.path.join(temp_dir, "c.db")
        cache = SQLiteCache(db_path=db)
        cache.set("k", 1)
        with sqlite3.connect(db) as conn:
            conn.execute("UPDATE api_cache SET created_at = '2000-01-01 00:00:00'")

        assert cache.get("k") == 1
        assert cache.purge_expired() == 0

    def test_unserialisable_value_not_stored(self, temp_dir):
        cache = SQLiteCache(db_path=os.path.join(temp_dir, "c.db"))
        cache.set("k", object())
        assert cache.get("k") is None


class TestRetries:
    def test_retries_then_succeeds(self):
        calls = []

        @with_retries(max_retries=2, initial_delay=0)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("nope")
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3

    def test_gives_up(self):
        @with_retries(max_retries=1, initial_delay=0)
        def broken():
            raise ConnectionError("nope")

        with pytest.raises(ConnectionError):
            broken()

    def test_unlisted_exception_not_retried(self):
        calls = []

        @with_retries(max_retries=3, initial_delay=0, exceptions=(ConnectionError,))
        def wrong():
            calls.append(1)
            raise SymbolNotFoundError("ZZZZ")

        with pytest.raises(SymbolNotFoundError):
            wrong()
        assert len(calls) == 1


class TestSearchLog:
    def test_record(self, temp_dir, logged_symbols):
        store = SearchLogStore(os.path.join(temp_dir, "log.db"))
        report = StockNewsReport(symbol="ACME", company_name="Acme", articles=[], average_sentiment=0.0)

        assert store.record(report) is True
        assert store.record(report) is True
        assert logged_symbols(store) == ["ACME", "ACME"]

    def test_write_failure_is_swallowed(self, temp_dir):
        store = SearchLogStore(os.path.join(temp_dir, "log.db"))
        with sqlite3.connect(store.db_path) as conn:
            conn.execute("DROP TABLE search_log")
        report = StockNewsReport(symbol="ACME", company_name="Acme", articles=[], average_sentiment=0.0)

        assert store.record(report) is False


class TestBackoff:
    def test_doubles_and_caps(self):
        from src.core.retry import backoff_delay

        assert [backoff_delay(n, 1, 5) for n in range(1, 6)] == [1, 2, 4, 5, 5]


class TestLogger:
    def test_console_only_when_no_file(self):
        from src.core.logger import setup_logger

        log = setup_logger("tracker.test.console", log_file="", level="debug")
        assert log.level == 10
        assert len(log.handlers) == 1

    def test_idempotent(self, temp_dir):
        from src.core.logger import setup_logger

        path = os.path.join(temp_dir, "logs", "t.log")
        first = setup_logger("tracker.test.file", log_file=path)
        second = setup_logger("tracker.test.file", log_file=path)
        assert first is second
        assert len(first.handlers) == 2
        assert os.path.isdir(os.path.dirname(path))
        for handler in list(first.handlers):
            handler.close()
            first.removeHandler(handler)
