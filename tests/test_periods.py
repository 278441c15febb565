from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from config import get_settings
from periods import (
    Period,
    add_months,
    current_month,
    days_in_month,
    local_today,
    resolve_period,
)


def test_add_months_clamps_to_end_of_shorter_month():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)


def test_add_months_keeps_base_day_when_it_exists_again():
    # computed from the base date, not chained month by month
    assert add_months(date(2024, 1, 31), 2) == date(2024, 3, 31)


def test_add_months_rolls_over_year_end():
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 12, 31), 12) == date(2025, 12, 31)
    assert add_months(date(2024, 2, 29), 12) == date(2025, 2, 28)


def test_days_in_month_handles_leap_years():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2100, 2) == 28
    assert days_in_month(2024, 12) == 31


def test_current_month_bounds():
    assert current_month(date(2024, 2, 10)) == Period(
        "this_month", date(2024, 2, 1), date(2024, 2, 29)
    )


def test_resolve_period_defaults_to_this_month():
    period = resolve_period(None, None, None, today=date(2025, 6, 18))
    assert (period.start, period.end) == (date(2025, 6, 1), date(2025, 6, 30))


def test_resolve_period_last_month_and_custom():
    last = resolve_period("last_month", None, None, today=date(2025, 1, 5))
    assert (last.start, last.end) == (date(2024, 12, 1), date(2024, 12, 31))

    custom = resolve_period("custom", "2025-01-10", "2025-02-10")
    assert custom.contains(date(2025, 1, 10))
    assert custom.contains(date(2025, 2, 10))
    assert not custom.contains(date(2025, 2, 11))


def test_resolve_period_rejects_inverted_range():
    with pytest.raises(ValueError):
        resolve_period("custom", "2025-02-10", "2025-01-10")


def test_local_today_uses_configured_timezone(monkeypatch):
    monkeypatch.setenv("BUDGET_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("BUDGET_TIMEZONE", "Pacific/Kiritimati")
    get_settings.cache_clear()
    try:
        assert get_settings().timezone == "Pacific/Kiritimati"
        assert local_today() == datetime.now(ZoneInfo("Pacific/Kiritimati")).date()
    finally:
        get_settings.cache_clear()
