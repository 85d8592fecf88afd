"""
Environment-driven runtime settings for the check tool and the scraper service.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """
    for filename in (".env", ".env.local"):
        env_path = PROJECT_ROOT / filename
        if not env_path.exists():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def _get_int_env(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    check_timeout_ms: int = 45000
    scraper_host: str = "0.0.0.0"
    scraper_port: int = 3001
    landing_url: str = "https://tabs.ultimate-guitar.com"
    navigation_timeout_ms: int = 60000
    page_timeout_ms: int = 10000
    selector_timeout_ms: int = 30000
    user_agent: str = DEFAULT_USER_AGENT


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return settings read once from the environment."""
    load_env_files()
    defaults = Settings()
    return Settings(
        log_level=_get_str_env("ETHOS_LOG_LEVEL", defaults.log_level),
        check_timeout_ms=_get_int_env("ETHOS_CHECK_TIMEOUT_MS", defaults.check_timeout_ms),
        scraper_host=_get_str_env("ETHOS_SCRAPER_HOST", defaults.scraper_host),
        scraper_port=_get_int_env("ETHOS_SCRAPER_PORT", defaults.scraper_port),
        landing_url=_get_str_env("ETHOS_SCRAPER_LANDING_URL", defaults.landing_url),
        navigation_timeout_ms=_get_int_env("ETHOS_SCRAPER_NAVIGATION_TIMEOUT_MS", defaults.navigation_timeout_ms),
        page_timeout_ms=_get_int_env("ETHOS_SCRAPER_PAGE_TIMEOUT_MS", defaults.page_timeout_ms),
        selector_timeout_ms=_get_int_env("ETHOS_SCRAPER_SELECTOR_TIMEOUT_MS", defaults.selector_timeout_ms),
        user_agent=_get_str_env("ETHOS_SCRAPER_USER_AGENT", defaults.user_agent),
    )
