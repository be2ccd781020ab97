from datetime import date, datetime

import pytest

from game_analytics.dates import (
    DateWindow,
    bucket_key,
    days_between,
    format_date,
    format_window_label,
    month_window,
    month_window_for,
    parse_local_date,
    parse_optional_date,
    shift_month,
    trailing_window,
    week_start,
    week_window,
)


def test_parse_local_date_uses_calendar_components():
    assert parse_local_date("2024-01-05") == date(2024, 1, 5)
    assert parse_local_date("2024-01-05T23:30:00") == date(2024, 1, 5)
    assert parse_local_date("2024-01-05T23:30:00.250Z") == date(2024, 1, 5)
    assert parse_local_date(datetime(2024, 1, 5, 23, 59)) == date(2024, 1, 5)
    assert parse_local_date(date(2024, 1, 5)) == date(2024, 1, 5)


@pytest.mark.parametrize(
    "value",
    [
        "2024-13-01",
        "2024-02-30",
        "yesterday",
        "2024/01/05",
        "",
        "2024-01-05Tgarbage",
        "2024-01-05T",
        "2024-01-05 12:00",
        "99999999999999999999-01-01",
    ],
)
def test_parse_local_date_rejects_malformed_values(value):
    with pytest.raises(ValueError):
        parse_local_date(value)


def test_parse_optional_date_treats_blank_as_missing():
    assert parse_optional_date(None) is None
    assert parse_optional_date("  ") is None
    assert parse_optional_date("2023-12-31") == date(2023, 12, 31)


def test_bucket_keys_start_weeks_on_monday():
    wednesday = date(2024, 1, 3)
    sunday = date(2024, 1, 7)

    assert week_start(wednesday) == date(2024, 1, 1)
    assert bucket_key(wednesday, "day") == "2024-01-03"
    assert bucket_key(wednesday, "week") == "2024-01-01"
    assert bucket_key(sunday, "week") == "2024-01-01"
    assert bucket_key("2024-01-08", "week") == "2024-01-08"
    assert bucket_key(wednesday, "month") == "2024-01"
    assert bucket_key(wednesday, "year") == "2024"

    with pytest.raises(ValueError):
        bucket_key(wednesday, "fortnight")


def test_week_windows_are_adjacent_and_closed():
    reference = date(2024, 1, 10)
    current = week_window(reference)
    previous = week_window(reference, 1)

    assert current == DateWindow(date(2024, 1, 8), date(2024, 1, 14))
    assert previous == DateWindow(date(2024, 1, 1), date(2024, 1, 7))
    assert (current.start - previous.end).days == 1
    assert current.previous() == previous
    assert current.days == 7
    assert current.contains(date(2024, 1, 8))
    assert current.contains(date(2024, 1, 14))
    assert not current.contains(date(2024, 1, 15))
    assert len(list(current.iter_days())) == 7


def test_window_rejects_inverted_bounds():
    with pytest.raises(ValueError):
        DateWindow(date(2024, 1, 2), date(2024, 1, 1))


def test_month_helpers_handle_leap_years_and_year_boundaries():
    assert month_window(2024, 2).end == date(2024, 2, 29)
    assert month_window(2023, 2).end == date(2023, 2, 28)
    assert shift_month(2024, 1, 1) == (2023, 12)
    assert shift_month(2024, 3, 14) == (2023, 1)
    assert month_window_for(date(2024, 1, 20), 1) == month_window(2023, 12)

    with pytest.raises(ValueError):
        month_window(2024, 13)


def test_trailing_window_includes_today():
    window = trailing_window(7, date(2024, 1, 10))

    assert window.start == date(2024, 1, 4)
    assert window.end == date(2024, 1, 10)
    assert window.days == 7

    with pytest.raises(ValueError):
        trailing_window(0, date(2024, 1, 10))


def test_format_window_label():
    assert format_window_label(month_window(2024, 3)) == "March 2024"
    assert format_window_label(week_window(date(2024, 1, 10))) == "Jan 08 - Jan 14, 2024"
    assert (
        format_window_label(DateWindow(date(2024, 1, 5), date(2024, 1, 5))) == "Jan 05, 2024"
    )


def test_days_between_and_format_date():
    assert days_between(date(2024, 1, 1), date(2024, 3, 1)) == 60
    assert days_between(date(2024, 3, 1), date(2024, 1, 1)) == -60
    assert format_date(date(2024, 2, 9)) == "2024-02-09"
