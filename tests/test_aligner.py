"""Tests for aligning indicator series onto the price axis."""

import pytest

from src.core.config import IndicatorSettings
from src.indicators.aligner import (
    align_series,
    align_value,
    build_aligned_rows,
    compute_indicators,
    leading_null_count,
    summarize_indicators,
)


class TestAlignment:
    def test_leading_null_count(self):
        assert leading_null_count(25, 6) == 19
        assert leading_null_count(5, 0) == 5

    def test_series_longer_than_prices(self):
        with pytest.raises(ValueError):
            leading_null_count(3, 4)

    def test_align_series_pads_left(self):
        assert align_series([7, 8], 5) == [None, None, None, 7, 8]

    def test_align_value(self):
        assert align_value([7, 8], 2, 5) is None
        assert align_value([7, 8], 3, 5) == 7
        assert align_value([7, 8], 4, 5) == 8

    def test_empty_series_is_all_none(self):
        assert align_series([], 3) == [None, None, None]


class TestBuildAlignedRows:
    def test_one_row_per_price_with_matching_dates(self, series_of):
        series = series_of(range(10, 35))
        indicators = compute_indicators([p.price for p in series])
        rows = build_aligned_rows(series, indicators)

        assert len(rows) == len(series)
        assert [r.date for r in rows] == [p.timestamp for p in series]
        assert [r.price for r in rows] == [p.price for p in series]

    def test_warm_up_prefix_per_indicator(self, series_of):
        series = series_of(range(10, 35))
        indicators = compute_indicators([p.price for p in series])
        rows = build_aligned_rows(series, indicators)

        sma20 = [r.sma20 for r in rows]
        assert sma20[:19] == [None] * 19
        assert sma20[-1] == pytest.approx(24.5)
        # 25 prices never reach a 50-period window
        assert all(r.sma50 is None for r in rows)
        rsi_values = [r.rsi for r in rows]
        assert rsi_values[:14] == [None] * 14
        assert rsi_values[14:] == [100.0] * 11

    def test_nulls_are_a_prefix(self, series_of):
        series = series_of([100 + (i % 5) for i in range(60)])
        rows = build_aligned_rows(series, compute_indicators([p.price for p in series]))

        for name in ("sma20", "sma50", "ema12", "ema26", "rsi", "macd", "signal", "histogram"):
            values = [getattr(r, name) for r in rows]
            first = next(i for i, v in enumerate(values) if v is not None)
            assert all(v is not None for v in values[first:]), name

    def test_custom_periods(self, series_of):
        settings = IndicatorSettings(sma_periods=[2, 3], ema_periods=[2, 3], rsi_period=2,
                                     macd_fast=2, macd_slow=3, macd_signal=2)
        series = series_of([1, 2, 3, 4, 5])
        rows = build_aligned_rows(series, compute_indicators([p.price for p in series], settings))

        assert [r.sma20 for r in rows] == [None, 1.5, 2.5, 3.5, 4.5]


class TestSummary:
    def test_latest_values(self):
        indicators = compute_indicators([float(p) for p in range(1, 61)])
        summary = summarize_indicators(indicators)

        assert summary.current_rsi == 100.0
        assert summary.sma20 == pytest.approx(sum(range(41, 61)) / 20)
        assert summary.macd_histogram == pytest.approx(indicators["histogram"][-1])

    def test_short_series_has_no_values(self):
        summary = summarize_indicators(compute_indicators([1.0, 2.0]))
        assert summary.current_rsi is None
        assert summary.current_macd is None
        assert summary.sma50 is None
