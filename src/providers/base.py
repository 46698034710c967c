"""Abstract base classes for data providers and sentiment scorers."""

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from src.core.logger import logger
from src.models.datatypes import (
    AnalystConsensus,
    EarningsCallSentiment,
    PriceSeries,
    SentimentTrend,
    SocialSentiment,
)


class MarketDataProvider(ABC):
    """Abstract interface for fetching quotes, profiles and historical prices."""

    @abstractmethod
    def fetch_quote_payloads(self, symbol: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        """
        Fetch the raw quote payloads for a symbol.

        Args:
            symbol (str): The ticker symbol.

        Returns:
            Tuple[dict, Optional[dict]]: ``(primary, secondary)`` where primary is
            the chart metadata and secondary the enrichment statistics, or
            ``None`` when the enrichment fetch failed.
        """
        pass

    @abstractmethod
    def fetch_profile_meta(self, symbol: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """
        Fetch metadata used to resolve a company profile.

        Returns:
            Tuple[dict, dict]: ``(chart_meta, info)``; either may be empty.
        """
        pass

    @abstractmethod
    def fetch_history(self, symbol: str, range_: str = "1mo", interval: str = "1d") -> PriceSeries:
        """
        Fetch an ordered price series for a symbol.

        Args:
            symbol (str): The ticker symbol.
            range_ (str): Lookback range (e.g. ``"1mo"``, ``"1y"``).
            interval (str): Sampling interval (e.g. ``"1d"``).

        Returns:
            PriceSeries: Points in increasing timestamp order; empty when none.
        """
        pass


class NewsProvider(ABC):
    """Abstract interface for fetching company-specific news articles."""

    name: str = "news"

    @abstractmethod
    def fetch_articles(self, symbol: str, company_name: str) -> Optional[List[Dict[str, Any]]]:
        """
        Fetch raw articles mentioning a company.

        Args:
            symbol (str): The ticker symbol.
            company_name (str): Company name used in the query.

        Returns:
            Optional[List[dict]]: Raw ``{title, description, content, url,
            publishedAt, source, urlToImage}`` dicts, or ``None`` on failure.
        """
        pass


class TextSentimentScorer(ABC):
    """Abstract interface for scoring free text into ``[-1.0, 1.0]``.

    ``score`` is total: it never raises and returns exactly ``0.0`` for empty
    or missing text. Strategies implement ``raw_score`` and signal failure by
    raising; ``on_failure`` decides what a failed call scores.
    """

    name: str = "scorer"

    def score(self, text: Optional[str]) -> float:
        """
        Score the sentiment of a given text.

        Args:
            text (str): The text to analyze; may be ``None``.

        Returns:
            float: Sentiment in ``[-1.0, 1.0]``.
        """
        if not text or not text.strip():
            return 0.0
        try:
            value = self.raw_score(text)
        except Exception as exc:
            return self.on_failure(text, exc)
        if value is None or not math.isfinite(value):
            return self.on_failure(text, ValueError(f"non-finite score {value!r}"))
        return max(-1.0, min(1.0, value))

    @abstractmethod
    def raw_score(self, text: str) -> float:
        """Score non-empty text; may raise to signal failure."""
        pass

    def on_failure(self, text: str, exc: Exception) -> float:
        logger.error(f"{type(self).__name__}: scoring failed, returning neutral: {exc}")
        return 0.0


class TextGenerator(ABC):
    """Abstract interface for a text-generation backend."""

    name: str = "generator"

    @abstractmethod
    def generate(self, system: str, prompt: str) -> str:
        """
        Generate a completion.

        Args:
            system (str): Instruction describing the expected output.
            prompt (str): The user prompt.

        Returns:
            str: Raw generated text. Implementations may raise on failure.
        """
        pass


class SignalProvider(ABC):
    """Abstract interface for the sentiment sub-sources."""

    @abstractmethod
    def social(self, symbol: str, company_name: Optional[str] = None) -> Optional[SocialSentiment]:
        pass

    @abstractmethod
    def earnings_call(self, symbol: str) -> Optional[EarningsCallSentiment]:
        pass

    @abstractmethod
    def analyst_consensus(self, symbol: str) -> Optional[AnalystConsensus]:
        pass

    @abstractmethod
    def trend(self, symbol: str, timeframe: str = "30d") -> Optional[SentimentTrend]:
        pass
