from datetime import date, datetime
from zoneinfo import ZoneInfo

from production_tracker.core.config import get_settings


LOCAL_TZ = ZoneInfo(get_settings().timezone)


def now_local() -> datetime:
    """Current wall-clock time in the configured business timezone."""
    return datetime.now(tz=LOCAL_TZ)


def today_local() -> date:
    return now_local().date()


__all__ = ["LOCAL_TZ", "now_local", "today_local"]
