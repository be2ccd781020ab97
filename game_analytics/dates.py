"""Calendar helpers shared by every analytics module.

Play log dates are calendar days without a time component. They are always
parsed from their ``YYYY-MM-DD`` components so a session logged on the 3rd
stays on the 3rd regardless of the host timezone. Weeks start on Monday.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator

DAY_NAMES: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# Optional time part such as T23:30, T23:30:00.123 or T00:00:00Z.
_DATE_PATTERN = re.compile(
    r"([0-9]+)-([0-9]+)-([0-9]+)"
    r"(?:T[0-9]{2}:[0-9]{2}(?::[0-9]{2}(?:\.[0-9]+)?)?(?:Z|[+-][0-9]{2}:?[0-9]{2})?)?"
)


def parse_local_date(value: str | date | datetime) -> date:
    """Parse a ``YYYY-MM-DD`` string into a :class:`date`.

    ``date`` values pass through and ``datetime`` values are truncated to
    their calendar day. A well-formed ISO time part after the day is ignored.
    Anything else, or components that do not form a real calendar day, raises
    ``ValueError``.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a YYYY-MM-DD date string, got {value!r}")

    match = _DATE_PATTERN.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD")

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Invalid date {value!r}: {exc}") from exc


def parse_optional_date(value: str | date | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return parse_local_date(value)


def format_date(value: date) -> str:
    return value.isoformat()


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def bucket_key(day: str | date, granularity: str) -> str:
    """Return the grouping key for ``day`` at the requested granularity.

    ``week`` keys are the ISO date of the Monday starting that week.
    """

    resolved = parse_local_date(day)
    if granularity == "day":
        return resolved.isoformat()
    if granularity == "week":
        return week_start(resolved).isoformat()
    if granularity == "month":
        return f"{resolved.year:04d}-{resolved.month:02d}"
    if granularity == "year":
        return f"{resolved.year:04d}"
    raise ValueError(f"Unsupported granularity: {granularity}")


def days_between(start: date, end: date) -> int:
    return (end - start).days


@dataclass(frozen=True)
class DateWindow:
    """A closed ``[start, end]`` range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"Window start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def previous(self) -> "DateWindow":
        length = timedelta(days=self.days)
        return DateWindow(start=self.start - length, end=self.end - length)

    def iter_days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


def window_for_range(start: str | date, end: str | date) -> DateWindow:
    return DateWindow(start=parse_local_date(start), end=parse_local_date(end))


def trailing_window(days: int, today: date) -> DateWindow:
    if days < 1:
        raise ValueError("Window length must be at least one day")
    return DateWindow(start=today - timedelta(days=days - 1), end=today)


def week_window(reference: date, offset: int = 0) -> DateWindow:
    start = week_start(reference) - timedelta(weeks=offset)
    return DateWindow(start=start, end=start + timedelta(days=6))


def month_window(year: int, month: int) -> DateWindow:
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return DateWindow(start=date(year, month, 1), end=date(year, month, last_day))


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) - offset
    return index // 12, index % 12 + 1


def month_window_for(reference: date, offset: int = 0) -> DateWindow:
    year, month = shift_month(reference.year, reference.month, offset)
    return month_window(year, month)


def year_window(year: int) -> DateWindow:
    return DateWindow(start=date(year, 1, 1), end=date(year, 12, 31))


def format_window_label(window: DateWindow) -> str:
    if window.start == window.end:
        return window.start.strftime("%b %d, %Y")
    if (
        window.start.day == 1
        and window.end == month_window(window.start.year, window.start.month).end
    ):
        return window.start.strftime("%B %Y")
    return f"{window.start.strftime('%b %d')} - {window.end.strftime('%b %d, %Y')}"


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5
