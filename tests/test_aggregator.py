"""Tests for the multi-source sentiment aggregator."""

import itertools
import math

import pytest

from src.models.datatypes import (
    AnalystConsensus,
    EarningsCallSentiment,
    SentimentTrend,
    SocialSentiment,
)
from src.pipeline.aggregator import aggregate_sentiment


SOURCES = {
    "social": SocialSentiment(positive=0.7, negative=0.1, confidence=0.8),
    "earnings_call": EarningsCallSentiment(overall=-0.4, confidence=0.9),
    "analyst": AnalystConsensus(rating="Sell", confidence=0.75),
    "trend": SentimentTrend(trend="declining"),
}


class TestAggregate:
    def test_social_absent_earnings_and_trend_present(self):
        earnings = EarningsCallSentiment(overall=0.6, confidence=0.9)
        trend = SentimentTrend(trend="improving")

        result = aggregate_sentiment(social=None, earnings_call=earnings, trend=trend)

        assert result.score == pytest.approx((0 + 0.6 + 0.3) / 3)
        assert result.confidence == pytest.approx((0.5 + 0.9 + 0.5) / 3)

    def test_all_absent_is_neutral(self):
        result = aggregate_sentiment()
        assert result.score == 0.0
        assert result.confidence == pytest.approx(0.5)

    def test_all_present(self):
        result = aggregate_sentiment(**SOURCES)

        assert result.score == pytest.approx((0.6 - 0.4 - 0.3) / 3)
        assert result.confidence == pytest.approx((0.8 + 0.9 + 0.75) / 3)
        assert result.factors.analyst_consensus == -0.5
        assert result.factors.trend_direction == -0.3

    def test_analyst_not_in_score(self):
        buy = aggregate_sentiment(analyst=AnalystConsensus(rating="Buy"))
        sell = aggregate_sentiment(analyst=AnalystConsensus(rating="Sell"))
        assert buy.score == sell.score == 0.0
        assert buy.factors.analyst_consensus == 0.5

    @pytest.mark.parametrize("rating,expected", [("Buy", 0.5), ("hold", 0.0), ("SELL", -0.5), ("Strong Buy", 0.0)])
    def test_analyst_mapping(self, rating, expected):
        result = aggregate_sentiment(analyst=AnalystConsensus(rating=rating))
        assert result.factors.analyst_consensus == expected

    def test_absent_trend_is_zero(self):
        assert aggregate_sentiment().factors.trend_direction == 0.0

    def test_missing_confidence_defaults(self):
        result = aggregate_sentiment(earnings_call=EarningsCallSentiment(overall=0.3, confidence=None))
        assert result.confidence == pytest.approx(0.5)

    def test_never_nan_for_any_subset(self):
        names = list(SOURCES)
        for r in range(len(names) + 1):
            for subset in itertools.combinations(names, r):
                result = aggregate_sentiment(**{n: SOURCES[n] for n in subset})
                assert math.isfinite(result.score), subset
                assert math.isfinite(result.confidence), subset
                assert -1.0 <= result.score <= 1.0
                assert 0.0 <= result.confidence <= 1.0

    def test_non_finite_inputs_treated_as_absent(self):
        result = aggregate_sentiment(
            social=SocialSentiment(positive=float("nan"), negative=0.1, confidence=float("inf")),
            earnings_call=EarningsCallSentiment(overall=float("nan")),
        )
        assert math.isfinite(result.score)
        assert result.confidence == pytest.approx(0.5)
