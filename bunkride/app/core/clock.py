"""
Wall clock for trip scheduling.

Trip dates and times are stored as naive local values in the configured
timezone, so "now" must be produced in the same frame.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from bunkride.app.core.config import settings


def now() -> datetime:
    """Current naive local time in ``settings.timezone``."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)
