"""
The process-wide calendar.

"Today" is the current calendar day in the configured
timezone, not the UTC date, so a sweep run shortly after
local midnight sees the new day.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from finance_tracker.config import get_settings


def local_today() -> date:
    settings = get_settings()
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()
