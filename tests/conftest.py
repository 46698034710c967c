"""
Shared pytest fixtures and configuration.

Provides stub providers so engine tests never touch the network.
"""

import os
import sqlite3
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from types import SimpleNamespace
from typing import Generator

import pytest

# Ensure src is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment before src.core.logger is imported
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["TRACKER_LOG_FILE"] = os.path.join(tempfile.gettempdir(), "tracker_test.log")

from src.core.config import AppConfig  # noqa: E402
from src.models.datatypes import (  # noqa: E402
    AnalystConsensus,
    EarningsCallSentiment,
    PricePoint,
    SentimentTrend,
    SocialSentiment,
)
from src.providers.base import (  # noqa: E402
    MarketDataProvider,
    NewsProvider,
    SignalProvider,
    TextSentimentScorer,
)


# ============================================================================
# Temporary Directory Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory(prefix="tracker_test_") as tmpdir:
        yield tmpdir


@pytest.fixture
def logged_symbols():
    """Read back the symbols a SearchLogStore recorded, newest first."""
    def read(store):
        with sqlite3.connect(store.db_path) as conn:
            rows = conn.execute("SELECT stock_symbol FROM search_log ORDER BY id DESC").fetchall()
        return [row[0] for row in rows]
    return read


@pytest.fixture
def config(temp_dir) -> AppConfig:
    """Default config writing into a temp dir, without env API keys."""
    cfg = AppConfig.from_dict({"output_dir": temp_dir, "stocks": ["acme"]}, read_env=False)
    cfg.engine.fetch_timeout_seconds = 2.0
    return cfg


# ============================================================================
# Stub Providers
# ============================================================================

def make_series(prices, start=datetime(2024, 1, 1)):
    return [
        PricePoint(timestamp=start + timedelta(days=i), price=float(p), volume=1000 + i)
        for i, p in enumerate(prices)
    ]


class StubMarket(MarketDataProvider):
    """In-memory market provider keyed by symbol."""

    def __init__(self, quotes=None, profiles=None, histories=None, fail=None):
        self.quotes = quotes or {}
        self.profiles = profiles or {}
        self.histories = histories or {}
        self.fail = fail or set()

    def fetch_quote_payloads(self, symbol):
        if "quote" in self.fail:
            raise ConnectionError("quote endpoint down")
        return self.quotes.get(symbol, ({}, None))

    def fetch_profile_meta(self, symbol):
        if "profile" in self.fail:
            raise ConnectionError("profile endpoint down")
        return self.profiles.get(symbol, ({}, {}))

    def fetch_history(self, symbol, range_="1mo", interval="1d"):
        if "history" in self.fail:
            raise ConnectionError("history endpoint down")
        return self.histories.get(symbol, [])


class StubNews(NewsProvider):
    name = "stub"

    def __init__(self, articles=None):
        self.articles = articles
        self.calls = []

    def fetch_articles(self, symbol, company_name):
        self.calls.append((symbol, company_name))
        return self.articles


class KeywordScorer(TextSentimentScorer):
    """Scores +0.5 for 'up', -0.5 for 'down', else 0."""

    name = "keyword"

    def raw_score(self, text):
        text = text.lower()
        if "up" in text.split():
            return 0.5
        if "down" in text.split():
            return -0.5
        return 0.0


class StubSignals(SignalProvider):
    def __init__(self, social=None, earnings=None, analyst=None, trend=None, fail=None):
        self._social = social
        self._earnings = earnings
        self._analyst = analyst
        self._trend = trend
        self.fail = fail or set()

    def _maybe_fail(self, name):
        if name in self.fail:
            raise ConnectionError(f"{name} down")

    def social(self, symbol, company_name=None):
        self._maybe_fail("social")
        return self._social

    def earnings_call(self, symbol):
        self._maybe_fail("earnings_call")
        return self._earnings

    def analyst_consensus(self, symbol):
        self._maybe_fail("analyst")
        return self._analyst

    def trend(self, symbol, timeframe="30d"):
        self._maybe_fail("trend")
        return self._trend


ACME_META = {
    "regularMarketPrice": 110.0,
    "previousClose": 100.0,
    "shortName": "Acme Corp",
    "currency": "USD",
    "exchangeName": "NMS",
}
ACME_INFO = {"industry": "Widgets", "country": "United States", "marketCap": 5e9}


@pytest.fixture
def acme_market() -> StubMarket:
    return StubMarket(
        quotes={"ACME": (ACME_META, ACME_INFO)},
        profiles={"ACME": (ACME_META, ACME_INFO)},
        histories={"ACME": make_series(range(10, 70))},
    )


@pytest.fixture
def acme_articles():
    return [
        {"title": "Acme Corp shares up on earnings", "description": "Strong quarter",
         "content": "", "url": "https://x/1", "publishedAt": "2024-03-01T12:00:00Z",
         "source": "Wire", "urlToImage": None},
        {"title": "Unrelated company news", "description": "Nothing here",
         "content": "", "url": "https://x/2", "publishedAt": "2024-03-01T13:00:00Z",
         "source": "Wire", "urlToImage": None},
        {"title": "ACME stock down after downgrade", "description": "Analyst cut",
         "content": "", "url": "https://x/3", "publishedAt": "2024-03-02T09:00:00Z",
         "source": "Wire", "urlToImage": None},
    ]


@pytest.fixture
def full_signals() -> StubSignals:
    return StubSignals(
        social=SocialSentiment(positive=0.6, negative=0.2, confidence=0.8),
        earnings=EarningsCallSentiment(overall=0.6, confidence=0.9),
        analyst=AnalystConsensus(rating="Buy", confidence=0.7),
        trend=SentimentTrend(trend="improving"),
    )


@pytest.fixture
def series_of():
    """Factory fixture: ``series_of(prices)`` → daily PriceSeries."""
    return make_series


@pytest.fixture
def stubs():
    """Stub provider classes, for tests that need custom instances."""
    return SimpleNamespace(
        Market=StubMarket,
        News=StubNews,
        Signals=StubSignals,
        Scorer=KeywordScorer,
    )


@pytest.fixture
def make_engine(config, acme_market, full_signals):
    """Factory fixture building an engine over stub collaborators."""
    from src.pipeline.engine import StockSentimentEngine

    def _make(market=None, news=None, signals=None, scorer=None, search_log=None):
        return StockSentimentEngine(
            config=config,
            market=market or acme_market,
            news_providers=news if news is not None else [StubNews([])],
            scorer=scorer or KeywordScorer(),
            signals=signals or full_signals,
            search_log=search_log,
        )
    return _make
