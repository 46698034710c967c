"""Tests for quote and profile normalization."""

import pytest

from src.core.errors import SymbolNotFoundError
from src.pipeline.normalizer import compute_change, normalize_profile, normalize_quote


PRIMARY = {
    "regularMarketPrice": 150.0,
    "previousClose": 120.0,
    "regularMarketDayHigh": 151.0,
    "regularMarketDayLow": 149.0,
    "regularMarketVolume": 1_000_000,
    "currency": "USD",
    "exchangeName": "NMS",
}


class TestComputeChange:
    def test_change_and_percent(self):
        change, pct = compute_change(150.0, 120.0)
        assert change == pytest.approx(30.0)
        assert pct == pytest.approx(25.0)

    def test_zero_previous_close(self):
        change, pct = compute_change(5.0, 0.0)
        assert change == 5.0
        assert pct is None

    def test_missing_previous_close(self):
        assert compute_change(5.0, None) == (None, None)


class TestNormalizeQuote:
    def test_change_computed_locally(self):
        """Upstream change fields are ignored in favour of local arithmetic."""
        primary = dict(PRIMARY, regularMarketChange=-99.0, regularMarketChangePercent=-99.0)
        quote = normalize_quote("AAPL", primary, None)

        assert quote.change == pytest.approx(30.0)
        assert quote.change_percent == pytest.approx(25.0)

    def test_secondary_wins(self):
        secondary = {"dayHigh": 155.0, "marketCap": 2.5e12, "trailingPE": 30.1}
        quote = normalize_quote("AAPL", PRIMARY, secondary)

        assert quote.day_high == 155.0
        assert quote.day_low == 149.0  # primary fallback
        assert quote.market_cap == 2.5e12
        assert quote.pe_ratio == 30.1

    def test_zero_is_kept(self):
        quote = normalize_quote("AAPL", PRIMARY, {"dividendYield": 0, "beta": 0.0})
        assert quote.dividend_yield == 0.0
        assert quote.beta == 0.0

    def test_absent_fields_are_none(self):
        quote = normalize_quote("AAPL", PRIMARY, None)
        assert quote.pe_ratio is None
        assert quote.price_to_book is None
        assert quote.volume == 1_000_000

    def test_raw_wrapped_numbers(self):
        quote = normalize_quote("AAPL", PRIMARY, {"beta": {"raw": 1.2, "fmt": "1.20"}})
        assert quote.beta == 1.2

    def test_non_numeric_is_unknown(self):
        quote = normalize_quote("AAPL", PRIMARY, {"beta": "n/a", "forwardPE": float("nan")})
        assert quote.beta is None
        assert quote.pe_ratio is None

    def test_malformed_secondary_ignored(self):
        quote = normalize_quote("AAPL", PRIMARY, ["not", "a", "dict"])
        assert quote.current_price == 150.0

    def test_missing_price_is_not_found(self):
        with pytest.raises(SymbolNotFoundError) as exc:
            normalize_quote("ZZZZ", {"currency": "USD"}, None)
        assert "ZZZZ" in str(exc.value)

    def test_exchange_and_currency(self):
        quote = normalize_quote("AAPL", PRIMARY)
        assert quote.currency == "USD"
        assert quote.exchange == "NMS"

        bare = normalize_quote("AAPL", {"regularMarketPrice": 1.0})
        assert bare.currency == "USD"
        assert bare.exchange == "Unknown"
        assert bare.previous_close is None
        assert bare.change is None


class TestNormalizeProfile:
    def test_profile_from_meta_and_info(self):
        meta = {"regularMarketPrice": 1.0, "longName": "Acme Corporation"}
        info = {"industry": "Widgets", "country": "US", "marketCap": 1e9}
        profile = normalize_profile("ACME", meta, info)

        assert profile.name == "Acme Corporation"
        assert profile.industry == "Widgets"
        assert profile.market_cap == 1e9

    def test_defaults(self):
        profile = normalize_profile("ACME", {"shortName": "Acme"})
        assert profile.industry == "Unknown"
        assert profile.country == "Unknown"

    def test_unknown_symbol(self):
        assert normalize_profile("ZZZZ", {}) is None
        assert normalize_profile("ZZZZ", {"currency": "USD"}) is None

    def test_price_without_name_uses_symbol(self):
        profile = normalize_profile("ACME", {"regularMarketPrice": 3.0})
        assert profile.name == "ACME"
