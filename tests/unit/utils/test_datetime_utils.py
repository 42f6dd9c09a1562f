from datetime import date, datetime, timezone

import pytest

from sync_guesty.utils.datetime import add_months, calendar_window, to_utc_date, utc_now


@pytest.mark.unit
def test_utc_now_is_timezone_aware() -> None:
    assert utc_now().tzinfo == timezone.utc


@pytest.mark.unit
@pytest.mark.parametrize(
    "day, months, expected",
    [
        (date(2026, 8, 31), 6, date(2027, 2, 28)),
        (date(2027, 8, 31), 6, date(2028, 2, 29)),
        (date(2026, 1, 15), 6, date(2026, 7, 15)),
        (date(2026, 12, 31), 1, date(2027, 1, 31)),
    ],
)
def test_add_months_clamps_to_month_end(day: date, months: int, expected: date) -> None:
    assert add_months(day, months) == expected


@pytest.mark.unit
def test_calendar_window_starts_today() -> None:
    assert calendar_window(date(2026, 10, 19), 6) == (date(2026, 10, 19), date(2027, 4, 19))


@pytest.mark.unit
@pytest.mark.parametrize(
    "value, expected",
    [
        ("2026-10-19", date(2026, 10, 19)),
        ("2026-10-19T23:30:00-02:00", date(2026, 10, 20)),
        ("2026-10-19T01:00:00+05:00", date(2026, 10, 18)),
        ("2026-10-19T10:00:00", date(2026, 10, 19)),
        (datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc), date(2026, 10, 19)),
        (date(2026, 10, 19), date(2026, 10, 19)),
        ("not a date", None),
        ("", None),
        (None, None),
        (20261019, None),
    ],
)
def test_to_utc_date(value: object, expected: object) -> None:
    assert to_utc_date(value) == expected
