"""Market data integration via yfinance and yfinance-cache."""

import pandas as pd
import yfinance as yf
try:
    import yfinance_cache as yfc
    HAS_YFC = True
except ImportError:
    HAS_YFC = False

from typing import Any, Dict, Optional, Tuple

from src.core.errors import UpstreamUnavailableError
from src.core.logger import logger
from src.core.retry import with_retries
from src.models.datatypes import PricePoint, PriceSeries
from src.providers.base import MarketDataProvider


class YFinanceProvider(MarketDataProvider):
    """Yahoo Finance implementation for quotes, profiles and price history.

    The chart metadata (``Ticker.history_metadata``) is the primary quote
    payload; ``Ticker.info`` is the secondary enrichment payload.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        """Args:
            timeout: Per-request timeout in seconds passed to yfinance.
        """
        self.timeout = timeout
        if not HAS_YFC:
            logger.warning("yfinance-cache is not imported/available. Falling back to base yfinance.")

    def fetch_quote_payloads(self, symbol: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
        """Return ``(chart_meta, info)``; ``info`` is None when enrichment fails."""
        logger.info(f"Fetching quote for {symbol}")
        meta = self._chart_meta(symbol)
        return meta, self._info(symbol)

    def fetch_profile_meta(self, symbol: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        logger.info(f"Fetching profile for {symbol}")
        return self._chart_meta(symbol), self._info(symbol) or {}

    def fetch_history(self, symbol: str, range_: str = "1mo", interval: str = "1d") -> PriceSeries:
        """
        Fetch adjusted closing prices and volumes for a symbol.

        Rows without a closing price are dropped; missing volume becomes 0.
        No gap filling is done — whatever the provider returns is the series.

        Args:
            symbol (str): The ticker symbol.
            range_ (str): yfinance ``period`` (e.g. ``"1mo"``).
            interval (str): yfinance ``interval`` (e.g. ``"1d"``).

        Returns:
            PriceSeries: Points in increasing timestamp order.
        """
        logger.info(f"Fetching history for {symbol} range={range_} interval={interval}")
        hist = self._history_frame(symbol, range_, interval)
        if hist is None or hist.empty:
            logger.warning(f"No history returned for {symbol}")
            return []

        return frame_to_series(hist)

    # ── internal ──────────────────────────────────────────────────────────────

    @with_retries(max_retries=2, initial_delay=1)
    def _history_frame(self, symbol: str, range_: str, interval: str) -> Optional[pd.DataFrame]:
        ticker = yfc.Ticker(symbol) if HAS_YFC else yf.Ticker(symbol)
        kwargs = {} if HAS_YFC else {"timeout": self.timeout}
        return ticker.history(period=range_, interval=interval, **kwargs)

    @with_retries(max_retries=2, initial_delay=1)
    def _chart_meta(self, symbol: str) -> Dict[str, Any]:
        ticker = yf.Ticker(symbol)
        # history_metadata is only populated after a history() call
        ticker.history(period="1d", interval="1d", timeout=self.timeout)
        meta = ticker.history_metadata or {}
        return dict(meta)

    def _info(self, symbol: str) -> Optional[Dict[str, Any]]:
        try:
            info = yf.Ticker(symbol).info
        except Exception as exc:
            logger.warning(
                f"Could not fetch additional market data for {symbol}: {exc}. "
                f"Falling back to chart metadata."
            )
            return None
        if not isinstance(info, dict) or not info:
            logger.warning(f"Empty enrichment payload for {symbol}")
            return None
        return info


def frame_to_series(hist: pd.DataFrame) -> PriceSeries:
    """Convert a yfinance history DataFrame into a :data:`PriceSeries`."""
    if "Close" not in hist.columns:
        raise UpstreamUnavailableError("yfinance", "history frame has no Close column")

    hist = hist.sort_index()
    closes = pd.to_numeric(hist["Close"], errors="coerce")
    if "Volume" in hist.columns:
        volumes = pd.to_numeric(hist["Volume"], errors="coerce").fillna(0).astype(int)
    else:
        volumes = pd.Series(0, index=hist.index)

    series: PriceSeries = []
    for ts, price, volume in zip(hist.index, closes, volumes):
        if pd.isna(price):
            continue
        series.append(PricePoint(
            timestamp=pd.Timestamp(ts).to_pydatetime(),
            price=float(price),
            volume=int(volume),
        ))
    return series
