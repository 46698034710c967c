"""Text sentiment scorers.

Pipeline:
    text (str) → TextSentimentScorer.score() → float in [-1.0, 1.0]

Strategies:
    LexiconSentimentScorer    — deterministic word-list baseline.
    GenerativeSentimentScorer — asks a TextGenerator for a single number.
    FallbackSentimentScorer   — tries a primary scorer, falls back to another.

Every ``score`` call is total: empty or missing text is exactly ``0.0`` and
no provider failure escapes. Strategies report failure by raising from
``raw_score``; the base class turns that into the fallback path.
"""

import math
import random
import re
from typing import Callable, Optional

from src.core.config import AppConfig
from src.core.errors import MalformedGenerativeResponseError
from src.core.logger import logger
from src.providers.base import TextGenerator, TextSentimentScorer

POSITIVE_WORDS = frozenset({
    "strong", "growth", "exceeds", "robust", "gains", "high", "positive", "success",
    "drive", "climbs", "surge", "rally", "bullish", "optimistic", "upgrade", "beat",
    "outperform", "profit", "revenue", "earnings", "dividend", "expansion", "innovation",
    "breakthrough", "milestone", "record", "soar", "jump", "rise", "boost", "momentum",
    "increase", "higher", "better", "improve", "gain", "excellent",
})

NEGATIVE_WORDS = frozenset({
    "concerns", "delays", "challenges", "impact", "regulations", "difficulties", "decline",
    "loss", "fall", "drop", "plunge", "crash", "bearish", "pessimistic", "downgrade",
    "miss", "underperform", "deficit", "debt", "bankruptcy", "lawsuit", "investigation",
    "scandal", "warning", "risk", "threat", "uncertainty", "volatility", "pressure",
    "decrease", "lower", "worse", "negative", "weak", "poor", "bad",
})

WORD_WEIGHT = 0.15

SYSTEM_PROMPT = (
    "You are a financial sentiment analyzer. Analyze the sentiment of the given text "
    "and return only a number between -1 and 1, where -1 is very negative, 0 is neutral, "
    "and 1 is very positive. Consider financial context, market impact, and investor sentiment."
)

Jitter = Callable[[], float]


def no_jitter() -> float:
    return 0.0


def uniform_jitter(rng: Optional[random.Random] = None, width: float = 0.1) -> Jitter:
    """Return a jitter source drawing from ``[-width/2, width/2)``."""
    rng = rng or random.Random()
    return lambda: (rng.random() - 0.5) * width


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


class LexiconSentimentScorer(TextSentimentScorer):
    """Word-list scorer: ±0.15 per matching token, damped by √matches.

    Args:
        jitter: Zero-argument callable added to every non-empty score.
            Defaults to no jitter so results are reproducible.
    """

    name = "lexicon"

    def __init__(
        self,
        positive_words=POSITIVE_WORDS,
        negative_words=NEGATIVE_WORDS,
        jitter: Jitter = no_jitter,
    ) -> None:
        self.positive_words = frozenset(positive_words)
        self.negative_words = frozenset(negative_words)
        self.jitter = jitter

    def raw_score(self, text: str) -> float:
        return self._word_score(text) + self.jitter()

    def _word_score(self, text: str) -> float:
        total = 0.0
        matches = 0
        for token in re.split(r"\W+", text.lower()):
            if token in self.positive_words:
                total += WORD_WEIGHT
                matches += 1
            if token in self.negative_words:
                total -= WORD_WEIGHT
                matches += 1

        if matches:
            total /= math.sqrt(matches)
        return total

    def on_failure(self, text: str, exc: Exception) -> float:
        # Only a misbehaving jitter source can get here.
        logger.error(f"LexiconSentimentScorer: jitter failed, scoring without it: {exc}")
        return _clamp(self._word_score(text))


def parse_sentiment_reply(reply: Optional[str]) -> float:
    """Parse a generator reply into a score.

    Raises:
        MalformedGenerativeResponseError: Reply is not a number in ``[-1, 1]``.
    """
    tokens = (reply or "").split()
    if not tokens:
        raise MalformedGenerativeResponseError(reply or "")
    try:
        value = float(tokens[0].rstrip(",;"))
    except ValueError:
        raise MalformedGenerativeResponseError(reply or "") from None
    if not math.isfinite(value) or not -1.0 <= value <= 1.0:
        raise MalformedGenerativeResponseError(reply or "")
    return value


class GenerativeSentimentScorer(TextSentimentScorer):
    """Scores text by asking a :class:`TextGenerator` for one number.

    Use through :class:`FallbackSentimentScorer` (see
    :func:`build_sentiment_scorer`); on its own a failure scores neutral.
    """

    name = "generative"

    def __init__(self, generator: TextGenerator, system_prompt: str = SYSTEM_PROMPT) -> None:
        self.generator = generator
        self.system_prompt = system_prompt

    def raw_score(self, text: str) -> float:
        prompt = f'Analyze the sentiment of this financial news: "{text}"'
        reply = self.generator.generate(self.system_prompt, prompt)
        return parse_sentiment_reply(reply)


class FallbackSentimentScorer(TextSentimentScorer):
    """Composite: use ``primary`` and fall back to ``fallback`` on any failure.

    Args:
        primary: Preferred strategy (usually generative).
        fallback: Backstop strategy (usually lexicon); its ``score`` is total.
    """

    name = "fallback"

    def __init__(self, primary: TextSentimentScorer, fallback: TextSentimentScorer) -> None:
        self.primary = primary
        self.fallback = fallback

    def raw_score(self, text: str) -> float:
        value = self.primary.raw_score(text)
        if value is None or not math.isfinite(value) or not -1.0 <= value <= 1.0:
            raise MalformedGenerativeResponseError(str(value))
        return value

    def on_failure(self, text: str, exc: Exception) -> float:
        logger.warning(
            f"FallbackSentimentScorer: {self.primary.name} failed ({exc}) — "
            f"using {self.fallback.name}"
        )
        return self.fallback.score(text)


def build_sentiment_scorer(
    config: AppConfig,
    generator: Optional[TextGenerator] = None,
    rng: Optional[random.Random] = None,
) -> TextSentimentScorer:
    """Build the scorer configured in ``config.sentiment``.

    Returns the lexicon scorer when no generative backend is available,
    otherwise a generative → lexicon fallback chain.
    """
    settings = config.sentiment
    jitter = uniform_jitter(rng, settings.jitter) if settings.jitter else no_jitter
    lexicon = LexiconSentimentScorer(jitter=jitter)

    if generator is None:
        from src.providers.llm import build_text_generator
        generator = build_text_generator(config)
    if generator is None:
        logger.info("build_sentiment_scorer: no generative backend — using lexicon scorer")
        return lexicon

    logger.info(f"build_sentiment_scorer: {generator.name} with lexicon fallback")
    return FallbackSentimentScorer(GenerativeSentimentScorer(generator), lexicon)
