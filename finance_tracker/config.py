"""
Application configuration.

Every setting comes from an environment variable, optionally
seeded from a .env file in the working directory.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Settings read once from the environment."""

    APP_NAME: str = "Personal Finance Tracker"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = _flag("DEBUG")

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Any SQLAlchemy URL; a local SQLite file when unset
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", "sqlite:///./finance_tracker.db"
    )

    # IANA zone that decides which calendar day is "today"
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Background sweep of recurring rules, once a day at HH:MM local
    SCHEDULER_ENABLED: bool = _flag("SCHEDULER_ENABLED")
    RECURRING_SWEEP_HOUR: int = int(os.getenv("RECURRING_SWEEP_HOUR", "3"))
    RECURRING_SWEEP_MINUTE: int = int(os.getenv("RECURRING_SWEEP_MINUTE", "15"))


@lru_cache()
def get_settings() -> Settings:
    return Settings()
