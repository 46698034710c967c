"""News feed providers and the fetch_raw_articles orchestrator.

Pipeline per symbol:
  1. NewsAPIProvider    — NewsAPI.org /v2/everything, exact-phrase query
                          ``"<company>" OR "<symbol>"`` over the lookback window.
  2. GoogleNewsProvider — Google News RSS, used when NewsAPI is unconfigured,
                          fails, or returns nothing.

Both providers emit the same flat raw shape:
    {title, description, content, url, publishedAt, source, urlToImage}
Relevance filtering and categorisation happen downstream in the engine.
"""

import urllib.parse
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import feedparser
import requests

from src.core.cache import SQLiteCache
from src.core.logger import logger
from src.core.news_utils import categorize_news, strip_suffix
from src.models.datatypes import NewsArticle
from src.providers.base import NewsProvider

_NEWSAPI_URL = "https://newsapi.org/v2/everything"
_GOOGLE_RSS_BASE = "https://news.google.com/rss/search"

NO_DESCRIPTION = "No description available"


# ── NewsAPIProvider ───────────────────────────────────────────────────────────

class NewsAPIProvider(NewsProvider):
    """NewsAPI.org ``/v2/everything`` provider.

    Cache key is symbol + day so repeated lookups within a day cost no quota.
    """

    name = "newsapi"

    def __init__(
        self,
        api_key: str,
        cache_instance: Optional[SQLiteCache] = None,
        lookback_days: int = 7,
        page_size: int = 50,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Args:
            api_key: NewsAPI.org API key.
            cache_instance: Shared SQLite cache (no caching when omitted).
            lookback_days: Oldest article age to request.
            page_size: Maximum articles per request.
            timeout: Request timeout in seconds.
        """
        self.api_key = api_key
        self.cache = cache_instance
        self.lookback_days = lookback_days
        self.page_size = page_size
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_articles(self, symbol: str, company_name: str) -> Optional[List[Dict[str, Any]]]:
        today = datetime.now(timezone.utc).date()
        cache_key = f"newsapi_{symbol}_{today.isoformat()}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"NewsAPIProvider: cache hit for {symbol}")
                return cached

        params = {
            "q": f'"{company_name}" OR "{symbol}"',
            "apiKey": self.api_key,
            "from": (today - timedelta(days=self.lookback_days)).isoformat(),
            "to": today.isoformat(),
            "sortBy": "relevancy",
            "language": "en",
            "pageSize": self.page_size,
        }
        logger.info(f"NewsAPIProvider: fetching for {symbol} (q={params['q']})")
        try:
            resp = self.session.get(_NEWSAPI_URL, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error(f"NewsAPIProvider: INFRA_FAILURE for {symbol}: {exc}")
            return None

        if resp.status_code != 200:
            logger.error(
                f"NewsAPIProvider: INFRA_FAILURE for {symbol} "
                f"HTTP {resp.status_code}: {resp.text[:200]}"
            )
            return None

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.error(f"NewsAPIProvider: malformed JSON for {symbol}: {exc}")
            return None

        articles = [_from_newsapi(a) for a in payload.get("articles") or [] if isinstance(a, dict)]
        logger.info(f"NewsAPIProvider: {len(articles)} articles for {symbol}")
        if self.cache is not None:
            self.cache.set(cache_key, articles)
        return articles


def _from_newsapi(article: Dict[str, Any]) -> Dict[str, Any]:
    source = article.get("source")
    if isinstance(source, dict):
        source = source.get("name")
    return {
        "title": (article.get("title") or "").strip(),
        "description": article.get("description") or "",
        "content": article.get("content") or "",
        "url": article.get("url") or "",
        "publishedAt": article.get("publishedAt") or "",
        "source": source or "NewsAPI",
        "urlToImage": article.get("urlToImage"),
    }


# ── GoogleNewsProvider ────────────────────────────────────────────────────────

class GoogleNewsProvider(NewsProvider):
    """Google News RSS provider.

    Query: ``"<company>" OR "<symbol>" when:<lookback>d`` (server-side date filter).
    """

    name = "google"

    def __init__(
        self,
        cache_instance: Optional[SQLiteCache] = None,
        lookback_days: int = 7,
        timeout: float = 15.0,
    ) -> None:
        """Args:
            cache_instance: Shared SQLite cache (no caching when omitted).
        """
        self.cache = cache_instance
        self.lookback_days = lookback_days
        self.timeout = timeout

    def fetch_articles(self, symbol: str, company_name: str) -> Optional[List[Dict[str, Any]]]:
        today = datetime.now(timezone.utc).date().isoformat()
        cache_key = f"gnews_{symbol}_{today}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"GoogleNewsProvider: cache hit for {symbol}")
                return cached

        query = f'"{strip_suffix(company_name)}" OR "{symbol}" when:{self.lookback_days}d'
        entries = self._fetch_rss(symbol, query)
        if entries is not None and self.cache is not None:
            self.cache.set(cache_key, entries)
        return entries

    def _fetch_rss(self, symbol: str, query: str) -> Optional[List[Dict[str, Any]]]:
        """Fetch and parse Google News RSS. Returns list of raw dicts or None."""
        encoded = urllib.parse.quote(query)
        url = f"{_GOOGLE_RSS_BASE}?q={encoded}&hl=en-US&gl=US&ceid=US:en"
        logger.info(f"GoogleNewsProvider: fetching [{symbol}] q={query!r}")

        try:
            resp = requests.get(url, timeout=self.timeout)
            resp.raise_for_status()
            feed = feedparser.parse(resp.content)
        except requests.RequestException as exc:
            logger.error(f"GoogleNewsProvider: INFRA_FAILURE for {symbol}: {exc}")
            return None

        if feed.bozo and hasattr(feed, "bozo_exception"):
            logger.warning(
                f"GoogleNewsProvider: RSS parse warning for {symbol}: "
                f"{feed.bozo_exception} | url={url}"
            )

        entries = []
        for entry in feed.entries:
            title = getattr(entry, "title", "").strip()
            if not title:
                continue
            pub_parsed = getattr(entry, "published_parsed", None)
            published = (
                datetime(*pub_parsed[:6], tzinfo=timezone.utc).isoformat()
                if pub_parsed else ""
            )
            source_raw = getattr(entry, "source", {})
            source = (
                source_raw.get("title", "Google News")
                if isinstance(source_raw, dict)
                else str(source_raw) or "Google News"
            )
            summary = getattr(entry, "summary", "")
            entries.append({
                "title": title,
                "description": summary,
                "content": "",
                "url": getattr(entry, "link", ""),
                "publishedAt": published,
                "source": source,
                "urlToImage": None,
            })

        logger.info(f"GoogleNewsProvider: {len(entries)} entries for {symbol}")
        return entries


# ── Orchestrator ──────────────────────────────────────────────────────────────

def fetch_raw_articles(
    symbol: str,
    company_name: str,
    providers: List[NewsProvider],
) -> List[Dict[str, Any]]:
    """Try each provider in order; return the first non-empty article list.

    Args:
        symbol: Ticker symbol.
        company_name: Resolved company name.
        providers: Providers in priority order.

    Returns:
        Raw article dicts, or ``[]`` when every provider failed or was empty.
    """
    for provider in providers:
        try:
            articles = provider.fetch_articles(symbol, company_name)
        except Exception as exc:
            logger.error(f"NEWS [{symbol}] {type(provider).__name__} raised: {exc}")
            continue
        if articles:
            logger.info(f"NEWS [{symbol}] source={provider.name} | {len(articles)} articles")
            return articles
    logger.warning(f"NEWS [{symbol}] reason=COVERAGE_GAP — no provider returned articles")
    return []


def parse_published_at(value: Any) -> float:
    """Convert an ISO 8601 timestamp (or epoch number) to epoch seconds; 0.0 if unparseable."""
    if isinstance(value, (int, float)):
        return float(value)
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def to_news_article(raw: Dict[str, Any]) -> NewsArticle:
    """Build an unscored :class:`NewsArticle` from a raw provider dict."""
    title = (raw.get("title") or "").strip()
    description = raw.get("description") or ""
    return NewsArticle(
        headline=title,
        summary=description or raw.get("content") or NO_DESCRIPTION,
        url=raw.get("url") or "",
        published_at=parse_published_at(raw.get("publishedAt")),
        source=raw.get("source") or "Unknown",
        category=categorize_news(title, description),
        image_url=raw.get("urlToImage"),
    )
