from datetime import date, datetime, timezone

import pytest

from app.config import settings
from app.utils import clock


@pytest.fixture
def new_york(monkeypatch):
    monkeypatch.setattr(settings, "APP_TIMEZONE", "America/New_York")


def test_day_start_in_utc():
    assert clock.day_start(datetime(2026, 3, 10, 9, 30)) == datetime(2026, 3, 10)


def test_day_start_follows_app_timezone(new_york):
    # 02:00 UTC is still the previous evening in New York (UTC-4 after DST)
    moment = datetime(2026, 6, 2, 2, 0)

    assert clock.local_date(moment) == date(2026, 6, 1)
    assert clock.day_start(moment) == datetime(2026, 6, 1, 4, 0)


def test_aware_datetimes_are_normalised():
    aware = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)

    assert clock.to_storage(aware) == datetime(2026, 3, 10, 9, 30)


def test_time_until_reset():
    assert clock.time_until_reset(datetime(2026, 3, 10, 23, 15)) == "0h 45m"
    assert clock.time_until_reset(datetime(2026, 3, 10, 0, 0)) == "24h 0m"
