"""Sentiment sub-source provider.

Only the social source can reach a real upstream (Twitter recent search, when
a bearer token is configured). Earnings-call, analyst and trend signals are
simulated from an injectable ``random.Random`` so runs can be reproduced.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from src.core.logger import logger
from src.models.datatypes import (
    AnalystConsensus,
    EarningsCallSentiment,
    PlatformSentiment,
    SentimentTrend,
    SocialSentiment,
    TopicSentiment,
    TrendPoint,
)
from src.providers.base import SignalProvider, TextSentimentScorer
from src.providers.sentiment import LexiconSentimentScorer

_TWITTER_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"

SOCIAL_CONFIDENCE = 0.8
POSITIVE_THRESHOLD = 0.1
NEGATIVE_THRESHOLD = -0.1

TIMEFRAME_DAYS = {"7d": 7, "30d": 30, "90d": 90}

EARNINGS_TOPICS = (
    # (topic, min mentions, mention spread)
    ("Revenue Growth", 5, 20),
    ("Market Expansion", 3, 15),
    ("Cost Management", 2, 10),
    ("Future Outlook", 8, 25),
)
EARNINGS_FOCUS = ("revenue growth", "market expansion", "cost optimization", "innovation")
ANALYST_RATINGS = ("Buy", "Hold", "Sell")


class SimulatedSignalProvider(SignalProvider):
    """Signal provider backed by a seeded RNG and, optionally, Twitter.

    Args:
        rng: Seeds the simulated values; a fresh one when omitted. Each call
            draws from its own generator derived from that seed, the call kind
            and the symbol, so results do not depend on thread scheduling.
        twitter_bearer_token: Enables live Twitter recent search for ``social``.
        scorer: Scores tweet text; defaults to the lexicon scorer.
        timeout: Twitter request timeout in seconds.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        twitter_bearer_token: Optional[str] = None,
        scorer: Optional[TextSentimentScorer] = None,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.seed = (rng or random.Random()).getrandbits(64)
        self.twitter_bearer_token = twitter_bearer_token
        self.scorer = scorer or LexiconSentimentScorer()
        self.timeout = timeout
        self.session = session or requests.Session()

    # ── social ────────────────────────────────────────────────────────────────

    def social(self, symbol: str, company_name: Optional[str] = None) -> Optional[SocialSentiment]:
        twitter = self._twitter(symbol, company_name)
        reddit = self._simulated_platform(symbol, "reddit", mentions_min=50, mentions_spread=500)
        platforms = [p for p in (twitter, reddit) if p is not None]
        if not platforms:
            return None

        n = len(platforms)
        # Mean of shares keeps positive - negative equal to the mean platform score.
        return SocialSentiment(
            positive=sum(p.positive for p in platforms) / n,
            negative=sum(p.negative for p in platforms) / n,
            neutral=sum(p.neutral for p in platforms) / n,
            mentions=sum(p.mentions for p in platforms),
            confidence=SOCIAL_CONFIDENCE,
            platforms=platforms,
        )

    def _twitter(self, symbol: str, company_name: Optional[str]) -> Optional[PlatformSentiment]:
        if not self.twitter_bearer_token:
            logger.info(f"SimulatedSignalProvider: no Twitter token, simulating twitter for {symbol}")
            return self._simulated_platform(symbol, "twitter", mentions_min=100, mentions_spread=1000)

        tweets = self._search_tweets(symbol, company_name)
        if tweets is None:
            return None

        positive = negative = neutral = 0
        for tweet in tweets:
            value = self.scorer.score(tweet.get("text"))
            if value > POSITIVE_THRESHOLD:
                positive += 1
            elif value < NEGATIVE_THRESHOLD:
                negative += 1
            else:
                neutral += 1

        total = positive + negative + neutral
        return PlatformSentiment(
            platform="twitter",
            mentions=len(tweets),
            positive=positive / total if total else 0.0,
            negative=negative / total if total else 0.0,
            neutral=neutral / total if total else 0.0,
            trending=len(tweets) > 50,
        )

    def _search_tweets(self, symbol: str, company_name: Optional[str]) -> Optional[List[Dict[str, Any]]]:
        terms = [f"${symbol}", symbol, company_name or symbol, f"#{symbol}", f"#{symbol.lower()}"]
        headers = {"Authorization": f"Bearer {self.twitter_bearer_token}"}
        tweets: List[Dict[str, Any]] = []
        failures = 0
        for term in dict.fromkeys(terms):
            params = {
                "query": f"{term} lang:en -is:retweet",
                "max_results": 100,
                "tweet.fields": "created_at,public_metrics,lang",
            }
            try:
                resp = self.session.get(
                    _TWITTER_SEARCH_URL, headers=headers, params=params, timeout=self.timeout
                )
                resp.raise_for_status()
                tweets.extend(resp.json().get("data") or [])
            except (requests.RequestException, ValueError) as exc:
                failures += 1
                logger.warning(f"SimulatedSignalProvider: tweet search failed for {term!r}: {exc}")

        if failures == len(dict.fromkeys(terms)):
            logger.error(f"SimulatedSignalProvider: INFRA_FAILURE twitter for {symbol}")
            return None
        return tweets

    def _rng(self, kind: str, symbol: str) -> random.Random:
        return random.Random(f"{self.seed}:{kind}:{symbol}")

    def _simulated_platform(
        self, symbol: str, platform: str, mentions_min: int, mentions_spread: int,
    ) -> PlatformSentiment:
        rng = self._rng(platform, symbol)
        return PlatformSentiment(
            platform=platform,
            mentions=rng.randrange(mentions_spread) + mentions_min,
            positive=rng.random() * 0.4 + 0.3,
            negative=rng.random() * 0.3 + 0.1,
            neutral=rng.random() * 0.3 + 0.2,
            trending=rng.random() > 0.5,
        )

    # ── earnings / analyst / trend ───────────────────────────────────────────

    def earnings_call(self, symbol: str) -> Optional[EarningsCallSentiment]:
        rng = self._rng("earnings", symbol)
        topics = [
            TopicSentiment(topic=name, sentiment=rng.uniform(-1, 1), mentions=rng.randrange(spread) + low)
            for name, low, spread in EARNINGS_TOPICS
        ]
        tone = "positive" if rng.random() > 0.5 else "mixed"
        focus = rng.choice(EARNINGS_FOCUS)
        return EarningsCallSentiment(
            overall=rng.uniform(-1, 1),
            confidence=rng.random() * 0.3 + 0.7,
            revenue=rng.uniform(-1, 1),
            growth=rng.uniform(-1, 1),
            guidance=rng.uniform(-1, 1),
            management=rng.uniform(-1, 1),
            last_earnings_date=datetime.now(timezone.utc) - timedelta(days=rng.random() * 90),
            key_topics=topics,
            summary=f"Analysis of {symbol} earnings call shows {tone} sentiment with focus on {focus}.",
        )

    def analyst_consensus(self, symbol: str) -> Optional[AnalystConsensus]:
        rng = self._rng("analyst", symbol)
        return AnalystConsensus(
            rating=rng.choice(ANALYST_RATINGS),
            confidence=rng.random() * 0.3 + 0.7,
            buy=rng.randrange(15) + 5,
            hold=rng.randrange(10) + 3,
            sell=rng.randrange(5) + 1,
            upside=rng.random() * 50 + 10,
        )

    def trend(self, symbol: str, timeframe: str = "30d") -> Optional[SentimentTrend]:
        """Simulate one point per day over ``timeframe`` (7d, 30d, otherwise 90d)."""
        rng = self._rng(f"trend-{timeframe}", symbol)
        days = TIMEFRAME_DAYS.get(timeframe, 90)
        today = datetime.now(timezone.utc).date()
        points = [
            TrendPoint(
                date=(today - timedelta(days=i)).isoformat(),
                sentiment=rng.uniform(-1, 1),
                volume=rng.randrange(1000) + 100,
                news_count=rng.randrange(20) + 5,
                social_mentions=rng.randrange(500) + 50,
            )
            for i in range(days, -1, -1)
        ]
        return SentimentTrend(
            trend="improving" if rng.random() > 0.5 else "declining",
            timeframe=timeframe,
            average_sentiment=rng.uniform(-1, 1),
            volatility=rng.random() * 0.5 + 0.1,
            data_points=points,
        )
