"""Error conditions surfaced by the tracker core.

Only :class:`SymbolNotFoundError`, :class:`NoRelevantDataError` and a
load-bearing :class:`UpstreamUnavailableError` ever reach callers of the
engine. :class:`MalformedGenerativeResponseError` is raised and caught inside
the generative scorer.
"""


class TrackerError(Exception):
    """Base exception for all tracker conditions."""
    pass


class UpstreamUnavailableError(TrackerError):
    """Raised when a provider times out, returns non-2xx, or sends a malformed payload."""

    def __init__(self, source: str, detail: str = "") -> None:
        self.source = source
        self.detail = detail
        message = f"{source} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SymbolNotFoundError(TrackerError):
    """Raised when the quote provider returns nothing identifiable for a symbol."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(
            f'Stock symbol "{symbol}" not found. Please check the symbol and try again.'
        )


class NoRelevantDataError(TrackerError):
    """Raised when a news query yields zero relevant articles after filtering."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(
            f"No recent news found for {symbol}. This might be a less active stock."
        )


class MalformedGenerativeResponseError(TrackerError):
    """Raised when a text generator replies with a non-numeric or out-of-range score."""

    def __init__(self, reply: str) -> None:
        self.reply = reply
        super().__init__(f"Malformed sentiment reply: {reply[:60]!r}")
