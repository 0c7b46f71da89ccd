"""
Calendar-day helpers

Timestamps are stored as naive UTC. Calendar days follow the app timezone
(settings.APP_TIMEZONE) and roll over at local midnight.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings


def app_zone() -> ZoneInfo:
    return ZoneInfo(settings.APP_TIMEZONE)


def utcnow() -> datetime:
    """Current time as naive UTC (storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage(moment: datetime) -> datetime:
    """Convert an aware or naive-UTC datetime to naive UTC"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(app_zone())


def local_date(moment: Optional[datetime] = None) -> date:
    """Calendar date of `moment` in the app timezone"""
    return to_local(moment or utcnow()).date()


def day_start(moment: Optional[datetime] = None) -> datetime:
    """Local midnight of the day containing `moment`, as naive UTC"""
    local_midnight = datetime.combine(
        local_date(moment), time.min, tzinfo=app_zone()
    )
    return to_storage(local_midnight)


def next_day_start(moment: Optional[datetime] = None) -> datetime:
    local_midnight = datetime.combine(
        local_date(moment) + timedelta(days=1), time.min, tzinfo=app_zone()
    )
    return to_storage(local_midnight)


def time_until_reset(moment: Optional[datetime] = None) -> str:
    """Time left until the next daily reset, e.g. '5h 12m'"""
    moment = to_storage(moment or utcnow())
    remaining = next_day_start(moment) - moment
    total_minutes = int(remaining.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
