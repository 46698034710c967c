"""Built-in directory of popular US tickers used for symbol search."""

from typing import Dict, List

POPULAR_STOCKS = [
    ("AAPL", "Apple Inc."),
    ("AMZN", "Amazon.com, Inc."),
    ("ADBE", "Adobe Inc."),
    ("ABT", "Abbott Laboratories"),
    ("ACN", "Accenture plc"),
    ("AMD", "Advanced Micro Devices, Inc."),
    ("AVGO", "Broadcom Inc."),
    ("ADP", "Automatic Data Processing, Inc."),
    ("AIG", "American International Group, Inc."),
    ("AXP", "American Express Company"),
    ("BA", "The Boeing Company"),
    ("BKNG", "Booking Holdings Inc."),
    ("BRK.A", "Berkshire Hathaway Inc."),
    ("BRK.B", "Berkshire Hathaway Inc."),
    ("CAT", "Caterpillar Inc."),
    ("CRM", "Salesforce, Inc."),
    ("CSCO", "Cisco Systems, Inc."),
    ("COST", "Costco Wholesale Corporation"),
    ("CVX", "Chevron Corporation"),
    ("CMCSA", "Comcast Corporation"),
    ("DIS", "The Walt Disney Company"),
    ("DHR", "Danaher Corporation"),
    ("DOCU", "DocuSign, Inc."),
    ("GOOGL", "Alphabet Inc. (Google)"),
    ("GE", "General Electric Company"),
    ("GS", "Goldman Sachs Group, Inc."),
    ("HD", "The Home Depot, Inc."),
    ("HON", "Honeywell International Inc."),
    ("IBM", "International Business Machines Corporation"),
    ("INTC", "Intel Corporation"),
    ("JPM", "JPMorgan Chase & Co."),
    ("JNJ", "Johnson & Johnson"),
    ("KO", "The Coca-Cola Company"),
    ("LLY", "Eli Lilly and Company"),
    ("LOW", "Lowe's Companies, Inc."),
    ("LYFT", "Lyft, Inc."),
    ("MSFT", "Microsoft Corporation"),
    ("META", "Meta Platforms, Inc. (Facebook)"),
    ("MA", "Mastercard Inc."),
    ("MCD", "McDonald's Corporation"),
    ("NFLX", "Netflix, Inc."),
    ("NVDA", "NVIDIA Corporation"),
    ("NEE", "NextEra Energy, Inc."),
    ("NKE", "NIKE, Inc."),
    ("ORCL", "Oracle Corporation"),
    ("OKTA", "Okta, Inc."),
    ("PG", "Procter & Gamble Co."),
    ("PFE", "Pfizer Inc."),
    ("PEP", "PepsiCo, Inc."),
    ("PYPL", "PayPal Holdings, Inc."),
    ("PLTR", "Palantir Technologies Inc."),
    ("QCOM", "QUALCOMM Incorporated"),
    ("ROKU", "Roku, Inc."),
    ("SBUX", "Starbucks Corporation"),
    ("SNAP", "Snap Inc."),
    ("SPOT", "Spotify Technology S.A."),
    ("SNOW", "Snowflake Inc."),
    ("SHOP", "Shopify Inc."),
    ("TSLA", "Tesla, Inc."),
    ("TGT", "Target Corporation"),
    ("TMO", "Thermo Fisher Scientific Inc."),
    ("TXN", "Texas Instruments Incorporated"),
    ("UBER", "Uber Technologies, Inc."),
    ("UNH", "UnitedHealth Group Inc."),
    ("V", "Visa Inc."),
    ("VZ", "Verizon Communications Inc."),
    ("WMT", "Walmart Inc."),
    ("ZM", "Zoom Video Communications, Inc."),
]


def search_symbols(query: str, limit: int = 10) -> List[Dict[str, str]]:
    """Return up to ``limit`` stocks whose symbol starts with, or name contains, ``query``.

    Matching is case-insensitive. An empty query matches nothing.
    """
    q = (query or "").strip().upper()
    if not q:
        return []
    results = [
        {"symbol": symbol, "description": name, "displaySymbol": symbol}
        for symbol, name in POPULAR_STOCKS
        if symbol.startswith(q) or q in name.upper()
    ]
    return results[:limit]
