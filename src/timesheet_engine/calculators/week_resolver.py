"""ISO week resolution.

Weeks run Monday to Sunday. A resolved window is half-open: ``start`` is the
Monday at 00:00 UTC and ``end`` is the following Monday at 00:00 UTC.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from timesheet_engine.errors import InvalidFormatError

WEEK_LABEL_PATTERN = re.compile(r"^(\d{4})-W(\d{1,2})$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

INVALID_WEEK_MESSAGE = (
    "Invalid week format. Use YYYY-Www (e.g., 2025-W36) or provide weekStart"
)
INVALID_DATE_MESSAGE = "Invalid weekStart date format. Use YYYY-MM-DD"

SUNDAY = -1


@dataclass(frozen=True)
class WeekWindow:
    """A seven day window with an exclusive end."""

    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        """First day after the window (exclusive bound)."""
        return self.end.date()

    @property
    def last_day(self) -> date:
        """Inclusive last day of the window."""
        return self.end_date - timedelta(days=1)

    @property
    def iso_label(self) -> str:
        return format_iso_week(self.start_date)

    @property
    def label(self) -> str:
        return week_range_label(self.start_date, self.last_day)

    def contains(self, day: date) -> bool:
        return self.start_date <= day < self.end_date


def _utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def window_from(day: date, message: str = INVALID_DATE_MESSAGE) -> WeekWindow:
    """Build a seven day window starting on ``day``.

    Windows running past the last representable date raise
    ``InvalidFormatError`` with ``message``.
    """
    start = _utc_midnight(day)
    try:
        end = start + timedelta(days=7)
    except OverflowError:
        raise InvalidFormatError(message, context={"start": day.isoformat()}) from None
    return WeekWindow(start=start, end=end)


def parse_date(value: str | date | datetime, message: str = INVALID_DATE_MESSAGE) -> date:
    """Parse a ``YYYY-MM-DD`` string (dates pass through)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not DATE_PATTERN.match(text):
        raise InvalidFormatError(message, context={"value": value})
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidFormatError(message, context={"value": value}) from None


def monday_of_iso_week(year: int, week: int) -> date:
    """Monday of ISO ``week`` in ``year``.

    Week 53 of a year with only 52 ISO weeks resolves to week 1 of the
    following year.
    """
    try:
        return date.fromisocalendar(year, 1, 1) + timedelta(weeks=week - 1)
    except (OverflowError, ValueError):
        raise InvalidFormatError(
            INVALID_WEEK_MESSAGE, context={"year": year, "week": week}
        ) from None


def parse_week_label(week_label: str) -> date:
    """Return the Monday for a ``YYYY-Www`` label."""
    match = WEEK_LABEL_PATTERN.match(week_label.strip())
    if not match:
        raise InvalidFormatError(INVALID_WEEK_MESSAGE, context={"week": week_label})
    year, week = int(match.group(1)), int(match.group(2))
    if week < 1 or week > 53 or year < 1:
        raise InvalidFormatError(INVALID_WEEK_MESSAGE, context={"week": week_label})
    return monday_of_iso_week(year, week)


def resolve_week(
    week_label: str | None = None,
    explicit_start: str | date | datetime | None = None,
) -> WeekWindow:
    """Resolve a week label or explicit start date into a window.

    An explicit start date takes precedence and is used as-is (it is not
    snapped to Monday).
    """
    if explicit_start is not None and explicit_start != "":
        return window_from(parse_date(explicit_start))
    if week_label:
        return window_from(parse_week_label(week_label), INVALID_WEEK_MESSAGE)
    raise InvalidFormatError(INVALID_WEEK_MESSAGE)


def day_index_mon_sat(day: date) -> int:
    """Monday=0 .. Saturday=5, Sunday=-1."""
    weekday = day.weekday()
    return SUNDAY if weekday == 6 else weekday


def start_of_iso_week(day: date | datetime) -> date:
    """Monday on or before ``day``."""
    if isinstance(day, datetime):
        day = parse_date(day)
    return day - timedelta(days=day.weekday())


def format_iso_week(day: date) -> str:
    """``YYYY-Www`` label of the ISO week containing ``day``."""
    iso = day.isocalendar()
    return f"{iso.year:04d}-W{iso.week:02d}"


def week_range_label(start: date, end: date) -> str:
    """Human label such as ``Sep 01 - Sep 07, 2025``."""
    return f"{start:%b %d} - {end:%b %d, %Y}"


def current_week(today: date | None = None) -> WeekWindow:
    """Window of the ISO week containing ``today`` (UTC)."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    return window_from(start_of_iso_week(today))
