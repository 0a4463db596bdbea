"""
Runtime configuration, read from the environment (and a .env file).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


HN_WEB_URL = "https://news.ycombinator.com"

DEFAULT_SEARCH_URL = "https://hn.algolia.com/api/v1/search"
DEFAULT_USER_AGENT = "hn-scraper/1.0"


@dataclass(frozen=True)
class Settings:
    search_url: str
    user_agent: str
    timeout: float
    log_level: str
    log_file: str
    username: Optional[str]
    password: Optional[str]


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_float(name: str, default: float) -> float:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Loads .env once and returns the cached Settings."""
    load_dotenv()

    return Settings(
        search_url=_get_env("HN_SEARCH_URL", DEFAULT_SEARCH_URL) or DEFAULT_SEARCH_URL,
        user_agent=_get_env("HN_USER_AGENT", DEFAULT_USER_AGENT) or DEFAULT_USER_AGENT,
        timeout=_get_float("HN_TIMEOUT", 10.0),
        log_level=(_get_env("HN_LOG_LEVEL", "INFO") or "INFO").upper(),
        log_file=_get_env("HN_LOG_FILE", "hn_scraper.log") or "hn_scraper.log",
        username=_get_env("HN_USERNAME"),
        password=_get_env("HN_PASSWORD"),
    )
