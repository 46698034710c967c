"""Technical indicators over ordered price sequences.

Every function is pure: it never mutates its input and returns a new list.
Outputs are right-aligned — the last element corresponds to the last input
price. An input too short for the requested period yields ``[]``; callers
treat an empty series as "not yet available", not as a fault.

Output lengths for ``L`` prices:
    sma / ema  → ``L - period + 1``
    rsi        → ``L - period``
    macd       → ``L - slow + 1`` (line), ``L - slow - signal + 2`` (signal, histogram)
"""

from dataclasses import dataclass, field
from typing import List, Sequence


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def sma(prices: Sequence[float], period: int) -> List[float]:
    """Simple moving average over a sliding window, earliest window first."""
    _check_period(period)
    n = len(prices)
    if period > n:
        return []

    out: List[float] = []
    # Sum each window from scratch; a running sum drifts over long series.
    for start in range(n - period + 1):
        window = prices[start:start + period]
        out.append(sum(window) / period)
    return out


def ema(prices: Sequence[float], period: int) -> List[float]:
    """Exponential moving average seeded with the SMA of the first window."""
    _check_period(period)
    n = len(prices)
    if period > n:
        return []

    multiplier = 2.0 / (period + 1)
    out = [sum(prices[:period]) / period]
    for price in prices[period:]:
        out.append(price * multiplier + out[-1] * (1 - multiplier))
    return out


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(prices: Sequence[float], period: int = 14) -> List[float]:
    """Relative Strength Index with Wilder smoothing, bounded to [0, 100].

    A window without losses saturates at exactly 100.
    """
    _check_period(period)
    if len(prices) < period + 1:
        return []

    gains: List[float] = []
    losses: List[float] = []
    for prev, cur in zip(prices, prices[1:]):
        change = cur - prev
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    out = [_rsi_value(avg_gain, avg_loss)]

    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        out.append(_rsi_value(avg_gain, avg_loss))
    return out


@dataclass
class MACDResult:
    """MACD line, signal line and histogram, right-aligned to each other."""
    macd: List[float] = field(default_factory=list)
    signal: List[float] = field(default_factory=list)
    histogram: List[float] = field(default_factory=list)


def tail(values: Sequence[float], length: int) -> List[float]:
    """Return the last ``length`` values (``[]`` for a non-positive length)."""
    if length <= 0:
        return []
    return list(values[len(values) - length:])


def macd(
    prices: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDResult:
    """Moving Average Convergence Divergence.

    The fast and slow EMAs are aligned on their tails before subtracting;
    the signal line is the EMA of the MACD line, and the histogram is the
    MACD tail minus the signal line.
    """
    fast_ema = ema(prices, fast)
    slow_ema = ema(prices, slow)
    if not fast_ema or not slow_ema:
        return MACDResult()

    length = min(len(fast_ema), len(slow_ema))
    macd_line = [f - s for f, s in zip(tail(fast_ema, length), tail(slow_ema, length))]

    signal_line = ema(macd_line, signal)
    hist_len = min(len(macd_line), len(signal_line))
    histogram = [
        m - s for m, s in zip(tail(macd_line, hist_len), tail(signal_line, hist_len))
    ]
    return MACDResult(macd=macd_line, signal=signal_line, histogram=histogram)
