"""Utility helpers for the news pipeline — relevance filtering and categorisation."""

import re
from typing import Iterable, List, Optional

from src.core.logger import logger

# Corporate suffixes stripped before constructing search queries.
# Legal suffixes only; descriptors such as 'Industries' stay part of the name.
CORPORATE_SUFFIXES = [
    "limited", "ltd", "ltd.", "corporation", "corp", "corp.",
    "inc", "inc.", "incorporated", "plc", "co.", "company",
]

# Checked in order; the first category with a matching keyword wins.
NEWS_CATEGORIES = [
    ("Earnings", ("earnings", "quarterly", "revenue", "profit")),
    ("Product Launch", ("product", "launch", "release", "announce")),
    ("M&A", ("acquisition", "merger", "buyout", "deal")),
    ("Analyst Rating", ("analyst", "rating", "upgrade", "downgrade")),
    ("Market Analysis", ("market", "trading", "stock", "price")),
]
DEFAULT_CATEGORY = "General News"


def strip_suffix(long_name: str) -> str:
    """Remove trailing corporate suffixes from a company long name.

    Examples:
        ``"Apple Inc."`` → ``"Apple"``
        ``"Acme Corp"`` → ``"Acme"``

    Args:
        long_name (str): Full company name.

    Returns:
        str: Name with trailing corporate suffix removed, stripped of whitespace.
    """
    pattern = r"[\s,]+(" + "|".join(re.escape(s) for s in CORPORATE_SUFFIXES) + r")[\s.]*$"
    return re.sub(pattern, "", long_name, flags=re.IGNORECASE).strip()


def is_relevant_article(
    symbol: str,
    company_name: str,
    title: Optional[str],
    description: Optional[str] = None,
    content: Optional[str] = None,
) -> bool:
    """Return True if any article text contains the company name or ticker.

    Plain case-insensitive substring match — no stemming, no word boundaries,
    no fuzzy matching.

    Args:
        symbol (str): Ticker symbol (e.g. ``"ACME"``).
        company_name (str): Company name as resolved from the profile.
        title, description, content: Article text fields; ``None`` counts as empty.

    Returns:
        bool: ``True`` if the article mentions the company.
    """
    needles = [n.lower() for n in (company_name, symbol) if n]
    if not needles:
        return False
    haystacks = [(t or "").lower() for t in (title, description, content)]
    return any(needle in hay for hay in haystacks for needle in needles)


def filter_relevant(raw_articles: Iterable[dict], symbol: str, company_name: str) -> List[dict]:
    """Keep raw provider articles that mention the company or ticker, in order."""
    kept = []
    total = 0
    for article in raw_articles:
        total += 1
        if is_relevant_article(
            symbol, company_name,
            article.get("title"), article.get("description"), article.get("content"),
        ):
            kept.append(article)
        else:
            logger.debug(f"filter_relevant: skipped {article.get('title')!r}")
    logger.info(f"filter_relevant: {len(kept)}/{total} articles relevant for {symbol}")
    return kept


def categorize_news(title: Optional[str], description: Optional[str] = None) -> str:
    """Assign exactly one category by keyword match on title + description.

    Args:
        title (str): Article headline.
        description (str): Article description; optional.

    Returns:
        str: One of the :data:`NEWS_CATEGORIES` names or ``"General News"``.
    """
    text = f"{title or ''} {description or ''}".lower()
    for category, keywords in NEWS_CATEGORIES:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY
