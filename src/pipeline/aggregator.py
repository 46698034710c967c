"""Multi-source sentiment aggregator.

Combines up to four independently fetched sub-results into one bounded score
and a confidence. Any source may be ``None``; a missing source contributes a
neutral default and is still counted in the fixed denominator:

    score      = (social + earnings_call + trend) / 3
    confidence = (social.conf or 0.5 + earnings.conf or 0.5 + analyst.conf or 0.5) / 3

The analyst consensus is reported as a factor but does not enter the score.
"""

import math
from typing import Optional

from src.models.datatypes import (
    AnalystConsensus,
    EarningsCallSentiment,
    SentimentAggregate,
    SentimentFactors,
    SentimentTrend,
    SocialSentiment,
)

DEFAULT_CONFIDENCE = 0.5
SCORE_SOURCES = 3
CONFIDENCE_SOURCES = 3

ANALYST_RATING_SCORES = {"buy": 0.5, "hold": 0.0, "sell": -0.5}
TREND_DIRECTION_SCORES = {"improving": 0.3, "declining": -0.3}


def _finite(value: Optional[float], default: float) -> float:
    if value is None:
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def social_score(social: Optional[SocialSentiment]) -> float:
    if social is None:
        return 0.0
    return _finite(social.positive, 0.0) - _finite(social.negative, 0.0)


def earnings_score(earnings: Optional[EarningsCallSentiment]) -> float:
    if earnings is None:
        return 0.0
    return _finite(earnings.overall, 0.0)


def analyst_score(analyst: Optional[AnalystConsensus]) -> float:
    if analyst is None or not analyst.rating:
        return 0.0
    return ANALYST_RATING_SCORES.get(analyst.rating.strip().lower(), 0.0)


def trend_score(trend: Optional[SentimentTrend]) -> float:
    if trend is None or not trend.trend:
        return 0.0
    return TREND_DIRECTION_SCORES.get(trend.trend.strip().lower(), 0.0)


def _confidence(source) -> float:
    if source is None:
        return DEFAULT_CONFIDENCE
    return _finite(source.confidence, DEFAULT_CONFIDENCE)


def aggregate_sentiment(
    social: Optional[SocialSentiment] = None,
    earnings_call: Optional[EarningsCallSentiment] = None,
    analyst: Optional[AnalystConsensus] = None,
    trend: Optional[SentimentTrend] = None,
) -> SentimentAggregate:
    """Combine whichever sub-results are available into a :class:`SentimentAggregate`.

    Never returns NaN: non-finite inputs are treated as absent, the score is
    clamped to ``[-1, 1]`` and the confidence to ``[0, 1]``.
    """
    factors = SentimentFactors(
        social_media=social_score(social),
        earnings_call=earnings_score(earnings_call),
        analyst_consensus=analyst_score(analyst),
        trend_direction=trend_score(trend),
    )
    score = (factors.social_media + factors.earnings_call + factors.trend_direction) / SCORE_SOURCES
    confidence = (
        _confidence(social) + _confidence(earnings_call) + _confidence(analyst)
    ) / CONFIDENCE_SOURCES

    return SentimentAggregate(
        score=_clamp(score, -1.0, 1.0),
        confidence=_clamp(confidence, 0.0, 1.0),
        factors=factors,
    )
