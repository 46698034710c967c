"""Quote/profile normalizer.

Merges a primary quote payload (chart metadata) with an optional secondary
enrichment payload (summary statistics) into one :class:`Quote`.

Field policy:
    enrichment field → secondary value, else primary equivalent, else ``None``.
    ``0`` is a legitimate value and is kept; only missing/non-numeric is unknown.
    change / change % → always computed locally from price and previous close.
"""

import math
from typing import Any, Dict, Mapping, Optional, Tuple

from src.core.errors import SymbolNotFoundError
from src.core.logger import logger
from src.models.datatypes import CompanyProfile, Quote

# Quote field → (secondary keys in priority order, primary keys in priority order)
_ENRICHMENT_FIELDS: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "day_high": (("dayHigh",), ("regularMarketDayHigh",)),
    "day_low": (("dayLow",), ("regularMarketDayLow",)),
    "open": (("open",), ("regularMarketOpen",)),
    "volume": (("volume", "regularMarketVolume"), ("regularMarketVolume",)),
    "market_cap": (("marketCap",), ("marketCap",)),
    "pe_ratio": (("forwardPE", "trailingPE"), ("trailingPE",)),
    "beta": (("beta",), ("beta",)),
    "dividend_yield": (("dividendYield",), ("trailingAnnualDividendYield", "dividendYield")),
    "fifty_two_week_high": (("fiftyTwoWeekHigh",), ("fiftyTwoWeekHigh",)),
    "fifty_two_week_low": (("fiftyTwoWeekLow",), ("fiftyTwoWeekLow",)),
    "price_to_book": (("priceToBook",), ()),
    "return_on_equity": (("returnOnEquity",), ()),
    "debt_to_equity": (("debtToEquity",), ()),
    "enterprise_value": (("enterpriseValue",), ()),
    "price_to_sales": (("priceToSalesTrailing12Months", "priceToSales"), ()),
}


def _number(value: Any) -> Optional[float]:
    """Coerce a payload value to a finite float, or None.

    yfinance occasionally wraps numbers as ``{"raw": 1.2, "fmt": "1.2"}``.
    """
    if isinstance(value, Mapping):
        value = value.get("raw")
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _first_number(payload: Optional[Mapping[str, Any]], keys: Tuple[str, ...]) -> Optional[float]:
    if not payload:
        return None
    for key in keys:
        number = _number(payload.get(key))
        if number is not None:
            return number
    return None


def compute_change(current: float, previous_close: Optional[float]) -> Tuple[Optional[float], Optional[float]]:
    """Return ``(change, change_percent)``; percent is None when previous close is 0/missing."""
    if previous_close is None:
        return None, None
    change = current - previous_close
    if previous_close == 0:
        return change, None
    return change, change / previous_close * 100


def normalize_quote(
    symbol: str,
    primary: Optional[Mapping[str, Any]],
    secondary: Optional[Mapping[str, Any]] = None,
) -> Quote:
    """
    Build a :class:`Quote` from provider payloads.

    Args:
        symbol: Ticker symbol the payloads belong to.
        primary: Chart metadata (``regularMarketPrice``, ``previousClose``, ...).
        secondary: Summary statistics; ``None`` when the enrichment fetch failed.

    Returns:
        Quote: Normalized record with locally computed change fields.

    Raises:
        SymbolNotFoundError: When the primary payload has no current price.
    """
    current = _first_number(primary, ("regularMarketPrice", "currentPrice"))
    if current is None:
        raise SymbolNotFoundError(symbol)

    if secondary is not None and not isinstance(secondary, Mapping):
        logger.warning(f"normalize_quote: malformed enrichment payload for {symbol}, ignoring")
        secondary = None

    previous_close = _first_number(primary, ("previousClose", "chartPreviousClose"))
    change, change_percent = compute_change(current, previous_close)

    fields: Dict[str, Any] = {}
    for name, (secondary_keys, primary_keys) in _ENRICHMENT_FIELDS.items():
        value = _first_number(secondary, secondary_keys)
        if value is None:
            value = _first_number(primary, primary_keys)
        fields[name] = value

    if fields["volume"] is not None:
        fields["volume"] = int(fields["volume"])

    return Quote(
        symbol=symbol,
        current_price=current,
        previous_close=previous_close,
        change=change,
        change_percent=change_percent,
        currency=(primary or {}).get("currency") or "USD",
        exchange=(primary or {}).get("exchangeName") or "Unknown",
        **fields,
    )


def normalize_profile(
    symbol: str,
    meta: Optional[Mapping[str, Any]],
    info: Optional[Mapping[str, Any]] = None,
) -> Optional[CompanyProfile]:
    """Resolve a :class:`CompanyProfile`; ``None`` when the symbol is unknown."""
    if not meta:
        return None
    info = info or {}
    name = meta.get("shortName") or meta.get("longName") or info.get("shortName") or info.get("longName")
    if not name:
        # Chart metadata without a price means the symbol did not resolve.
        if _first_number(meta, ("regularMarketPrice",)) is None:
            return None
        name = symbol
    return CompanyProfile(
        symbol=symbol,
        name=name,
        industry=info.get("industry") or meta.get("industry") or "Unknown",
        country=info.get("country") or meta.get("country") or "Unknown",
        market_cap=_first_number(info, ("marketCap",)) or _first_number(meta, ("marketCap",)),
    )
