"""Tracker engine: orchestrates providers, indicators and sentiment per symbol.

Flow per symbol:
  1. Market    — profile + quote (+ history) fetched concurrently
  2. Indicators — compute_indicators → build_aligned_rows → summary
  3. News      — fetch_raw_articles (NewsAPI → Google) → filter_relevant
  4. Sentiment — per-article scoring in parallel, averaged in article order
  5. Signals   — social / earnings call / analyst / trend → aggregate_sentiment

Every upstream fetch is bounded by ``engine.fetch_timeout_seconds``; a failed
or timed-out fetch is treated as "source absent". Only the documented
``TrackerError`` conditions reach callers.
"""

import json
import os
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from src.core.cache import SQLiteCache
from src.core.config import AppConfig
from src.core.errors import (
    NoRelevantDataError,
    SymbolNotFoundError,
    TrackerError,
    UpstreamUnavailableError,
)
from src.core.logger import logger
from src.core.news_utils import filter_relevant
from src.core.symbols import search_symbols
from src.indicators.aligner import build_aligned_rows, compute_indicators, summarize_indicators
from src.models.datatypes import (
    AlignedRow,
    CompanyProfile,
    ComprehensiveSentiment,
    HistoricalReport,
    NewsArticle,
    Quote,
    StockNewsReport,
    StockOverview,
)
from src.pipeline.aggregator import aggregate_sentiment
from src.pipeline.normalizer import normalize_profile, normalize_quote
from src.pipeline.search_log import SearchLogStore
from src.providers.base import MarketDataProvider, NewsProvider, SignalProvider, TextSentimentScorer
from src.providers.market import YFinanceProvider
from src.providers.news import GoogleNewsProvider, NewsAPIProvider, fetch_raw_articles, to_news_article
from src.providers.sentiment import LexiconSentimentScorer, build_sentiment_scorer
from src.providers.signals import SimulatedSignalProvider

OVERVIEW_HISTORY_ROWS = 30

HISTORY_COLUMNS = [
    "date", "price", "volume",
    "sma20", "sma50", "ema12", "ema26", "rsi", "macd", "signal", "histogram",
]


@dataclass
class _Outcome:
    value: Any = None
    error: Optional[BaseException] = None


class StockSentimentEngine:
    """Request-scoped operations over injected collaborators.

    Args:
        config: Typed settings (see :class:`AppConfig`).
        market: Quote / profile / history provider.
        news_providers: News providers in priority order.
        scorer: Per-article text sentiment scorer.
        signals: Social / earnings / analyst / trend provider.
        search_log: Optional best-effort store for news searches.
    """

    def __init__(
        self,
        config: AppConfig,
        market: MarketDataProvider,
        news_providers: List[NewsProvider],
        scorer: TextSentimentScorer,
        signals: SignalProvider,
        search_log: Optional[SearchLogStore] = None,
    ) -> None:
        self.config = config
        self.market = market
        self.news_providers = news_providers
        self.scorer = scorer
        self.signals = signals
        self.search_log = search_log
        self.timeout = config.engine.fetch_timeout_seconds

    @classmethod
    def from_config(cls, config: AppConfig) -> "StockSentimentEngine":
        """Wire the production providers from ``config``."""
        cache = SQLiteCache(
            db_path=os.path.join(config.output_dir, ".cache.db"),
            ttl_hours=24,
        )
        cache.purge_expired()
        news_providers: List[NewsProvider] = []
        if config.news_api_key:
            news_providers.append(NewsAPIProvider(
                api_key=config.news_api_key,
                cache_instance=cache,
                lookback_days=config.news.lookback_days,
                page_size=config.news.page_size,
                timeout=config.engine.fetch_timeout_seconds,
            ))
        else:
            logger.warning("StockSentimentEngine: NEWS_API_KEY not set — using Google News only")
        news_providers.append(GoogleNewsProvider(
            cache_instance=cache,
            lookback_days=config.news.lookback_days,
            timeout=config.engine.fetch_timeout_seconds,
        ))

        return cls(
            config=config,
            market=YFinanceProvider(timeout=config.engine.fetch_timeout_seconds),
            news_providers=news_providers,
            scorer=build_sentiment_scorer(config),
            signals=SimulatedSignalProvider(
                twitter_bearer_token=config.twitter_bearer_token,
                scorer=LexiconSentimentScorer(),
                timeout=config.engine.fetch_timeout_seconds,
            ),
            search_log=SearchLogStore(os.path.join(config.output_dir, "search_log.db")),
        )

    # ── market ────────────────────────────────────────────────────────────────

    def get_quote(self, symbol: str) -> Quote:
        """
        Fetch and normalize the current quote.

        Raises:
            SymbolNotFoundError: The provider knows nothing about ``symbol``.
            UpstreamUnavailableError: The provider could not be reached.
        """
        symbol = symbol.upper()
        try:
            primary, secondary = self.market.fetch_quote_payloads(symbol)
        except TrackerError:
            raise
        except Exception as exc:
            raise UpstreamUnavailableError("quote", f"{symbol}: {exc}") from exc
        return normalize_quote(symbol, primary, secondary)

    def get_profile(self, symbol: str) -> CompanyProfile:
        symbol = symbol.upper()
        try:
            meta, info = self.market.fetch_profile_meta(symbol)
        except TrackerError:
            raise
        except Exception as exc:
            raise UpstreamUnavailableError("profile", f"{symbol}: {exc}") from exc
        profile = normalize_profile(symbol, meta, info)
        if profile is None:
            raise SymbolNotFoundError(symbol)
        return profile

    def get_historical(
        self,
        symbol: str,
        range_: Optional[str] = None,
        interval: Optional[str] = None,
    ) -> HistoricalReport:
        """
        Fetch a price series and align every indicator to it.

        Raises:
            UpstreamUnavailableError: No price data at all for ``symbol``.
        """
        symbol = symbol.upper()
        range_ = range_ or self.config.history.range
        interval = interval or self.config.history.interval
        try:
            series = self.market.fetch_history(symbol, range_, interval)
        except TrackerError:
            raise
        except Exception as exc:
            raise UpstreamUnavailableError("history", f"{symbol}: {exc}") from exc
        if not series:
            raise UpstreamUnavailableError("history", f"no price data for {symbol}")

        indicators = compute_indicators([p.price for p in series], self.config.indicators)
        rows = build_aligned_rows(series, indicators)
        logger.info(f"StockSentimentEngine: {len(rows)} history rows for {symbol} ({range_}/{interval})")
        return HistoricalReport(
            symbol=symbol,
            range=range_,
            interval=interval,
            rows=rows,
            indicators=summarize_indicators(indicators),
        )

    def get_stock_overview(self, symbol: str) -> StockOverview:
        """Profile + quote + one month of indicator history, fetched concurrently."""
        symbol = symbol.upper()
        outcomes = self._gather({
            "profile": lambda: self.get_profile(symbol),
            "quote": lambda: self.get_quote(symbol),
            "history": lambda: self.get_historical(symbol, "1mo", "1d"),
        })
        profile = self._require_profile(symbol, outcomes["profile"])
        history: Optional[HistoricalReport] = outcomes["history"].value
        return StockOverview(
            profile=profile,
            quote=outcomes["quote"].value,
            indicators=history.indicators if history else None,
            price_history=history.rows[-OVERVIEW_HISTORY_ROWS:] if history else [],
        )

    # ── news ──────────────────────────────────────────────────────────────────

    def get_stock_news(self, symbol: str) -> StockNewsReport:
        """
        Build the scored news report for a symbol.

        Raises:
            SymbolNotFoundError: Profile lookup found nothing.
            NoRelevantDataError: No article mentions the company or ticker.
        """
        symbol = symbol.upper()
        outcomes = self._gather({
            "profile": lambda: self.get_profile(symbol),
            "quote": lambda: self.get_quote(symbol),
        })
        profile = self._require_profile(symbol, outcomes["profile"])
        quote: Optional[Quote] = outcomes["quote"].value

        raw = fetch_raw_articles(symbol, profile.name, self.news_providers)
        relevant = filter_relevant(raw, symbol, profile.name)
        articles = [a for a in (to_news_article(r) for r in relevant) if a.headline and a.summary]
        articles = articles[: self.config.news.max_articles]
        if not articles:
            raise NoRelevantDataError(symbol)

        scored = self.score_articles(articles)
        average = round(sum(a.sentiment for a in scored) / len(scored), 3)
        logger.info(f"StockSentimentEngine: {symbol} average sentiment {average} over {len(scored)} articles")

        report = StockNewsReport(
            symbol=symbol,
            company_name=profile.name,
            articles=scored,
            average_sentiment=average,
            current_price=quote.current_price if quote else None,
            price_change=quote.change if quote else None,
            price_change_percent=quote.change_percent if quote else None,
            industry=profile.industry,
            market_cap=profile.market_cap,
            country=profile.country,
        )
        if self.search_log is not None:
            self.search_log.record(report)
        return report

    def score_articles(self, articles: List[NewsArticle]) -> List[NewsArticle]:
        """Score ``headline + " " + summary`` for each article, preserving order."""
        if not articles:
            return []
        texts = [f"{a.headline} {a.summary}" for a in articles]
        workers = max(1, min(self.config.engine.max_workers, len(texts)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="Score") as executor:
            scores = list(executor.map(self.scorer.score, texts))
        return [a.with_sentiment(s) for a, s in zip(articles, scores)]

    # ── sentiment ─────────────────────────────────────────────────────────────

    def get_comprehensive_sentiment(self, symbol: str, timeframe: str = "30d") -> ComprehensiveSentiment:
        """Fetch the four sub-sources concurrently and aggregate whatever arrived."""
        symbol = symbol.upper()
        outcomes = self._gather({
            "social": lambda: self.signals.social(symbol),
            "earnings_call": lambda: self.signals.earnings_call(symbol),
            "analyst": lambda: self.signals.analyst_consensus(symbol),
            "trend": lambda: self.signals.trend(symbol, timeframe),
        })
        values = {name: outcome.value for name, outcome in outcomes.items()}
        overall = aggregate_sentiment(**values)
        logger.info(
            f"StockSentimentEngine: {symbol} overall={overall.score:.3f} "
            f"confidence={overall.confidence:.3f} "
            f"absent={[n for n, v in values.items() if v is None]}"
        )
        return ComprehensiveSentiment(
            symbol=symbol,
            timestamp=datetime.now(timezone.utc),
            overall=overall,
            **values,
        )

    # ── misc ──────────────────────────────────────────────────────────────────

    def search(self, query: str, limit: int = 10) -> List[Dict[str, str]]:
        return search_symbols(query, limit)

    def health(self) -> Dict[str, Any]:
        """Report which collaborators are configured."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "market_provider": type(self.market).__name__,
            "news_providers": [p.name for p in self.news_providers],
            "news_api_configured": bool(self.config.news_api_key),
            "sentiment_scorer": self.scorer.name,
            "generative_backend": self.config.sentiment.backend,
            "twitter_configured": bool(self.config.twitter_bearer_token),
            "search_log_enabled": self.search_log is not None,
        }

    # ── batch ─────────────────────────────────────────────────────────────────

    def run(self, symbols: Optional[List[str]] = None) -> Dict[str, Dict[str, str]]:
        """Write history / news / sentiment reports for each symbol.

        A failure for one report is logged and recorded; the engine always
        continues with the next report and symbol.

        Returns:
            ``{symbol: {report: "ok" | error message}}``.
        """
        symbols = [s.upper() for s in (symbols or self.config.stocks)]
        os.makedirs(self.config.output_dir, exist_ok=True)
        logger.info(f"StockSentimentEngine: running {len(symbols)} symbols → {self.config.output_dir}")

        status: Dict[str, Dict[str, str]] = {}
        for symbol in symbols:
            status[symbol] = {
                "history": self._run_step(symbol, "history", lambda: write_history_csv(
                    self.get_historical(symbol).rows,
                    os.path.join(self.config.output_dir, f"history_{symbol}.csv"),
                )),
                "news": self._run_step(symbol, "news", lambda: write_json(
                    self.get_stock_news(symbol).to_dict(),
                    os.path.join(self.config.output_dir, f"news_{symbol}.json"),
                )),
                "sentiment": self._run_step(symbol, "sentiment", lambda: write_json(
                    self.get_comprehensive_sentiment(symbol).to_dict(),
                    os.path.join(self.config.output_dir, f"sentiment_{symbol}.json"),
                )),
            }
        return status

    def _run_step(self, symbol: str, step: str, func: Callable[[], None]) -> str:
        try:
            func()
        except (TrackerError, OSError) as exc:
            logger.error(f"StockSentimentEngine: {step} failed for {symbol}: {exc}")
            return str(exc)
        return "ok"

    # ── internal ──────────────────────────────────────────────────────────────

    def _gather(self, tasks: Dict[str, Callable[[], Any]]) -> Dict[str, _Outcome]:
        """Run ``tasks`` concurrently and join them with one shared deadline.

        A task that raises or misses the deadline yields an ``_Outcome`` with
        ``value=None``; unfinished work is cancelled and never consumed.
        """
        executor = ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="Fetch")
        try:
            futures = {name: executor.submit(func) for name, func in tasks.items()}
            done, _ = wait(futures.values(), timeout=self.timeout)

            outcomes: Dict[str, _Outcome] = {}
            for name, future in futures.items():
                if future not in done:
                    future.cancel()
                    logger.warning(f"StockSentimentEngine: {name} timed out after {self.timeout}s")
                    outcomes[name] = _Outcome(error=UpstreamUnavailableError(name, "timed out"))
                    continue
                exc = future.exception()
                if exc is not None:
                    logger.warning(f"StockSentimentEngine: {name} unavailable: {exc}")
                    outcomes[name] = _Outcome(error=exc)
                else:
                    outcomes[name] = _Outcome(value=future.result())
            return outcomes
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _require_profile(symbol: str, outcome: _Outcome) -> CompanyProfile:
        if outcome.value is not None:
            return outcome.value
        if isinstance(outcome.error, UpstreamUnavailableError):
            raise outcome.error
        raise SymbolNotFoundError(symbol)


# ── report writers ────────────────────────────────────────────────────────────

def rows_to_frame(rows: List[AlignedRow]) -> pd.DataFrame:
    """Aligned rows as a DataFrame; warm-up indicator cells are NaN."""
    frame = pd.DataFrame([row.to_dict() for row in rows], columns=HISTORY_COLUMNS)
    return frame


def write_history_csv(rows: List[AlignedRow], path: str) -> None:
    rows_to_frame(rows).to_csv(path, index=False)
    logger.info(f"write_history_csv: saved {len(rows)} rows → {path}")


def write_json(data: Dict[str, Any], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    logger.info(f"write_json: saved → {path}")
