"""Tests for converting yfinance history frames."""

import pandas as pd
import pytest

from src.core.errors import UpstreamUnavailableError
from src.providers.market import frame_to_series


class TestFrameToSeries:
    def test_sorted_and_gaps_dropped(self):
        index = pd.to_datetime(["2024-01-03", "2024-01-01", "2024-01-02"])
        hist = pd.DataFrame(
            {"Close": [12.0, 10.0, float("nan")], "Volume": [300, 100, None]},
            index=index,
        )

        series = frame_to_series(hist)

        assert [p.price for p in series] == [10.0, 12.0]
        assert [p.volume for p in series] == [100, 300]
        assert series[0].timestamp < series[1].timestamp

    def test_missing_volume_is_zero(self):
        hist = pd.DataFrame({"Close": [5.0]}, index=pd.to_datetime(["2024-01-01"]))
        assert frame_to_series(hist)[0].volume == 0

    def test_no_close_column(self):
        hist = pd.DataFrame({"Open": [5.0]}, index=pd.to_datetime(["2024-01-01"]))
        with pytest.raises(UpstreamUnavailableError):
            frame_to_series(hist)
