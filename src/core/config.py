"""Configuration module for loading project settings and environment variables.

``load_config`` reads the raw YAML dict; ``AppConfig.from_dict`` turns it into
the typed object that is passed explicitly to every provider and to the
engine. API keys are read from the environment once, at that point.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_PLACEHOLDER_KEYS = {"", "your_openai_api_key_here", "your_news_api_key_here"}


def load_config(config_path: str | Path = "config.yaml") -> Dict[str, Any]:
    """
    Load configuration from the specified YAML file.

    Args:
        config_path (str | Path): Path to the configuration file. Defaults to "config.yaml".

    Returns:
        Dict[str, Any]: A dictionary containing the configuration settings.
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    with open(config_file, "r", encoding="utf-8") as file:
        config_data = yaml.safe_load(file)

    if not config_data:
        raise ValueError(f"Configuration file {config_path} is empty or invalid.")

    return config_data


def _env_key(name: str) -> Optional[str]:
    """Return an API key from the environment, treating placeholders as unset."""
    value = (os.getenv(name) or "").strip()
    return None if value in _PLACEHOLDER_KEYS else value


@dataclass
class IndicatorSettings:
    sma_periods: List[int] = field(default_factory=lambda: [20, 50])
    ema_periods: List[int] = field(default_factory=lambda: [12, 26])
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9

    def __post_init__(self) -> None:
        for name in ("sma_periods", "ema_periods"):
            periods = getattr(self, name)
            if not isinstance(periods, (list, tuple)) or len(periods) != 2:
                raise ValueError(f"indicators.{name} must list exactly two periods, got {periods!r}")
            setattr(self, name, [_period(f"indicators.{name}", p) for p in periods])
        for name in ("rsi_period", "macd_fast", "macd_slow", "macd_signal"):
            setattr(self, name, _period(f"indicators.{name}", getattr(self, name)))
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"indicators.macd_fast ({self.macd_fast}) must be shorter than macd_slow ({self.macd_slow})"
            )


def _period(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    return value


@dataclass
class HistorySettings:
    range: str = "1mo"
    interval: str = "1d"


@dataclass
class NewsSettings:
    max_articles: int = 12
    lookback_days: int = 7
    page_size: int = 50


@dataclass
class SentimentSettings:
    backend: str = "none"  # none | openai | local
    model: str = "gpt-3.5-turbo"
    jitter: float = 0.0


@dataclass
class EngineSettings:
    max_workers: int = 8
    fetch_timeout_seconds: float = 15.0


@dataclass
class AppConfig:
    """Typed settings passed into each collaborator's constructor."""
    stocks: List[str] = field(default_factory=list)
    output_dir: str = "output"
    history: HistorySettings = field(default_factory=HistorySettings)
    indicators: IndicatorSettings = field(default_factory=IndicatorSettings)
    news: NewsSettings = field(default_factory=NewsSettings)
    sentiment: SentimentSettings = field(default_factory=SentimentSettings)
    engine: EngineSettings = field(default_factory=EngineSettings)
    news_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    twitter_bearer_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], read_env: bool = True) -> "AppConfig":
        """
        Build an ``AppConfig`` from a parsed ``config.yaml`` dict.

        Args:
            data: Raw config dict as returned by :func:`load_config`.
            read_env: Pull API keys from the environment when True.

        Returns:
            AppConfig: Populated settings; unknown keys are ignored.
        """
        data = data or {}
        return cls(
            stocks=[str(s).upper() for s in data.get("stocks", [])],
            output_dir=data.get("output_dir", "output"),
            history=HistorySettings(**data.get("history", {})),
            indicators=IndicatorSettings(**data.get("indicators", {})),
            news=NewsSettings(**data.get("news", {})),
            sentiment=SentimentSettings(**data.get("sentiment", {})),
            engine=EngineSettings(**data.get("engine", {})),
            news_api_key=_env_key("NEWS_API_KEY") if read_env else None,
            openai_api_key=_env_key("OPENAI_API_KEY") if read_env else None,
            twitter_bearer_token=_env_key("TWITTER_BEARER_TOKEN") if read_env else None,
        )
