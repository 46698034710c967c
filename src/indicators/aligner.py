"""Series aligner — maps right-aligned indicator series back onto the price axis.

An indicator series of length ``M`` derived from ``L`` prices covers the
last ``M`` prices, so row ``i`` reads ``series[i - (L - M)]`` once
``i >= L - M`` and is ``None`` before that. Alignment is by index offset
only; timestamps are never looked up.
"""

from typing import Dict, List, Optional, Sequence

from src.core.config import IndicatorSettings
from src.indicators.technical import ema, macd, rsi, sma
from src.models.datatypes import AlignedRow, IndicatorSummary, PriceSeries


def leading_null_count(total: int, series_length: int) -> int:
    """Number of leading rows with no value for a series of ``series_length``."""
    if series_length > total:
        raise ValueError(
            f"indicator series ({series_length}) longer than price series ({total})"
        )
    return total - series_length


def align_value(series: Sequence[float], index: int, total: int) -> Optional[float]:
    """Value of ``series`` at price row ``index`` of ``total``, or None during warm-up."""
    offset = leading_null_count(total, len(series))
    if index < offset:
        return None
    return series[index - offset]


def align_series(series: Sequence[float], total: int) -> List[Optional[float]]:
    """Pad ``series`` on the left with ``None`` so it has ``total`` entries."""
    offset = leading_null_count(total, len(series))
    return [None] * offset + list(series)


def _last(series: Sequence[float]) -> Optional[float]:
    return series[-1] if series else None


def compute_indicators(
    prices: Sequence[float],
    settings: Optional[IndicatorSettings] = None,
) -> Dict[str, List[float]]:
    """Run every configured indicator over ``prices``.

    Keys match the :class:`AlignedRow` indicator fields: ``sma20``, ``sma50``,
    ``ema12``, ``ema26``, ``rsi``, ``macd``, ``signal``, ``histogram``.
    """
    settings = settings or IndicatorSettings()
    sma_short, sma_long = settings.sma_periods
    ema_fast, ema_slow = settings.ema_periods
    macd_result = macd(prices, settings.macd_fast, settings.macd_slow, settings.macd_signal)
    return {
        "sma20": sma(prices, sma_short),
        "sma50": sma(prices, sma_long),
        "ema12": ema(prices, ema_fast),
        "ema26": ema(prices, ema_slow),
        "rsi": rsi(prices, settings.rsi_period),
        "macd": macd_result.macd,
        "signal": macd_result.signal,
        "histogram": macd_result.histogram,
    }


def build_aligned_rows(
    series: PriceSeries,
    indicators: Dict[str, Sequence[float]],
) -> List[AlignedRow]:
    """Produce one :class:`AlignedRow` per price point.

    Args:
        series: The price series the indicators were computed from.
        indicators: Mapping of row field name → right-aligned indicator series.

    Returns:
        List of rows with ``rows[i].date == series[i].timestamp``.
    """
    total = len(series)
    padded = {name: align_series(values, total) for name, values in indicators.items()}

    rows: List[AlignedRow] = []
    for i, point in enumerate(series):
        fields = {name: values[i] for name, values in padded.items()}
        rows.append(AlignedRow(
            date=point.timestamp,
            price=point.price,
            volume=point.volume,
            **fields,
        ))
    return rows


def summarize_indicators(indicators: Dict[str, Sequence[float]]) -> IndicatorSummary:
    """Latest value of each indicator series (None when a series is empty)."""
    return IndicatorSummary(
        current_rsi=_last(indicators.get("rsi", [])),
        current_macd=_last(indicators.get("macd", [])),
        macd_signal=_last(indicators.get("signal", [])),
        macd_histogram=_last(indicators.get("histogram", [])),
        sma20=_last(indicators.get("sma20", [])),
        sma50=_last(indicators.get("sma50", [])),
    )
