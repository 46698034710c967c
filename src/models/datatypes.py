"""Data structures for the stock sentiment tracker.

All records are request-scoped value objects; nothing here is persisted by
the core.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PricePoint:
    """One sample of a price series."""
    timestamp: datetime
    price: float
    volume: int = 0


# Ordered, strictly increasing timestamps.
PriceSeries = List[PricePoint]


@dataclass
class AlignedRow:
    """
    One row per original price timestamp with nullable indicator fields.

    An indicator field stays ``None`` until that indicator's warm-up period
    has elapsed for the row's date.
    """
    date: datetime
    price: float
    volume: int
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    ema12: Optional[float] = None
    ema26: Optional[float] = None
    rsi: Optional[float] = None
    macd: Optional[float] = None
    signal: Optional[float] = None
    histogram: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass
class IndicatorSummary:
    """Latest value of each indicator, independent of alignment."""
    current_rsi: Optional[float] = None
    current_macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_histogram: Optional[float] = None
    sma20: Optional[float] = None
    sma50: Optional[float] = None


@dataclass
class HistoricalReport:
    symbol: str
    range: str
    interval: str
    rows: List[AlignedRow]
    indicators: IndicatorSummary


@dataclass
class CompanyProfile:
    symbol: str
    name: str
    industry: str = "Unknown"
    country: str = "Unknown"
    market_cap: Optional[float] = None


@dataclass
class Quote:
    """
    Normalized quote record.

    ``change`` and ``change_percent`` are always computed locally from
    ``current_price`` and ``previous_close``. Enrichment fields are ``None``
    when no source supplied them; ``0`` is a real value, never "unknown".
    """
    symbol: str
    current_price: float
    previous_close: Optional[float]
    change: Optional[float]
    change_percent: Optional[float]
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    open: Optional[float] = None
    volume: Optional[int] = None
    market_cap: Optional[float] = None
    pe_ratio: Optional[float] = None
    beta: Optional[float] = None
    dividend_yield: Optional[float] = None
    fifty_two_week_high: Optional[float] = None
    fifty_two_week_low: Optional[float] = None
    price_to_book: Optional[float] = None
    return_on_equity: Optional[float] = None
    debt_to_equity: Optional[float] = None
    enterprise_value: Optional[float] = None
    price_to_sales: Optional[float] = None
    currency: str = "USD"
    exchange: str = "Unknown"


@dataclass(frozen=True)
class NewsArticle:
    """
    Represents a normalized news article fetched from any news provider.

    ``sentiment`` is ``None`` until the scorer runs; use :meth:`with_sentiment`
    to obtain the scored copy.
    """
    headline: str
    summary: str
    url: str
    published_at: float  # epoch seconds
    source: str
    category: str
    image_url: Optional[str] = None
    sentiment: Optional[float] = None

    def with_sentiment(self, sentiment: float) -> "NewsArticle":
        if self.sentiment is not None:
            raise ValueError("sentiment already set for this article")
        return replace(self, sentiment=sentiment)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.headline,
            "description": self.summary,
            "url": self.url,
            "publishedAt": datetime.fromtimestamp(self.published_at, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "sentiment": self.sentiment,
            "source": self.source,
            "image": self.image_url,
            "category": self.category,
        }


@dataclass
class StockNewsReport:
    symbol: str
    company_name: str
    articles: List[NewsArticle]
    average_sentiment: float
    current_price: Optional[float] = None
    price_change: Optional[float] = None
    price_change_percent: Optional[float] = None
    industry: str = "Unknown"
    market_cap: Optional[float] = None
    country: str = "Unknown"

    @property
    def total_articles(self) -> int:
        return len(self.articles)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stockSymbol": self.symbol,
            "companyName": self.company_name,
            "currentPrice": self.current_price,
            "priceChange": self.price_change,
            "priceChangePercent": self.price_change_percent,
            "articles": [a.to_dict() for a in self.articles],
            "averageSentiment": self.average_sentiment,
            "totalArticles": self.total_articles,
            "industry": self.industry,
            "marketCap": self.market_cap,
            "country": self.country,
        }


@dataclass
class StockOverview:
    profile: CompanyProfile
    quote: Optional[Quote]
    indicators: Optional[IndicatorSummary]
    price_history: List[AlignedRow] = field(default_factory=list)

    @property
    def trading_session(self) -> Dict[str, Optional[float]]:
        q = self.quote
        return {
            "open": q.open if q else None,
            "high": q.day_high if q else None,
            "low": q.day_low if q else None,
            "close": q.current_price if q else None,
        }


# ── sentiment sub-sources ───────────────────────────────────────────────────

@dataclass
class PlatformSentiment:
    """Mention breakdown for one social platform; shares are in [0, 1]."""
    platform: str
    mentions: int = 0
    positive: float = 0.0
    negative: float = 0.0
    neutral: float = 0.0
    trending: bool = False

    @property
    def score(self) -> float:
        return self.positive - self.negative


@dataclass
class SocialSentiment:
    positive: float
    negative: float
    neutral: float = 0.0
    mentions: int = 0
    confidence: Optional[float] = None
    platforms: List[PlatformSentiment] = field(default_factory=list)


@dataclass
class TopicSentiment:
    topic: str
    sentiment: float
    mentions: int


@dataclass
class EarningsCallSentiment:
    overall: float
    confidence: Optional[float] = None
    revenue: Optional[float] = None
    growth: Optional[float] = None
    guidance: Optional[float] = None
    management: Optional[float] = None
    last_earnings_date: Optional[datetime] = None
    key_topics: List[TopicSentiment] = field(default_factory=list)
    summary: str = ""


@dataclass
class AnalystConsensus:
    rating: str  # Buy | Hold | Sell
    confidence: Optional[float] = None
    buy: int = 0
    hold: int = 0
    sell: int = 0
    upside: Optional[float] = None


@dataclass
class TrendPoint:
    date: str
    sentiment: float
    volume: int
    news_count: int
    social_mentions: int


@dataclass
class SentimentTrend:
    trend: str  # improving | declining
    timeframe: str = "30d"
    average_sentiment: float = 0.0
    volatility: float = 0.0
    data_points: List[TrendPoint] = field(default_factory=list)


@dataclass
class SentimentFactors:
    social_media: float = 0.0
    earnings_call: float = 0.0
    analyst_consensus: float = 0.0
    trend_direction: float = 0.0


@dataclass
class SentimentAggregate:
    score: float
    confidence: float
    factors: SentimentFactors


@dataclass
class ComprehensiveSentiment:
    symbol: str
    timestamp: datetime
    overall: SentimentAggregate
    social: Optional[SocialSentiment] = None
    earnings_call: Optional[EarningsCallSentiment] = None
    analyst: Optional[AnalystConsensus] = None
    trend: Optional[SentimentTrend] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        if self.earnings_call and self.earnings_call.last_earnings_date:
            data["earnings_call"]["last_earnings_date"] = (
                self.earnings_call.last_earnings_date.isoformat()
            )
        return data
