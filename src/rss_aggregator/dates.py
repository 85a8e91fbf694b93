"""UTC calendar arithmetic used for feed update scheduling."""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from dateutil import parser as date_parser

JANUARY_MONTH_INDEX = 0
FEBRUARY_MONTH_INDEX = 1
MARCH_MONTH_INDEX = 2
APRIL_MONTH_INDEX = 3
MAY_MONTH_INDEX = 4
JUNE_MONTH_INDEX = 5
JULY_MONTH_INDEX = 6
AUGUST_MONTH_INDEX = 7
SEPTEMBER_MONTH_INDEX = 8
OCTOBER_MONTH_INDEX = 9
NOVEMBER_MONTH_INDEX = 10
DECEMBER_MONTH_INDEX = 11

DAYS_IN_JANUARY = 31
DAYS_IN_FEBRUARY_LEAP_YEAR = 29
DAYS_IN_FEBRUARY_NON_LEAP_YEAR = 28
DAYS_IN_MARCH = 31
DAYS_IN_APRIL = 30
DAYS_IN_MAY = 31
DAYS_IN_JUNE = 30
DAYS_IN_JULY = 31
DAYS_IN_AUGUST = 31
DAYS_IN_SEPTEMBER = 30
DAYS_IN_OCTOBER = 31
DAYS_IN_NOVEMBER = 30
DAYS_IN_DECEMBER = 31

# Zone names allowed in RFC 822 dates, as offsets from UTC in seconds.
RFC822_TIMEZONES = {
    "UT": 0,
    "GMT": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}


class InvalidDateError(TypeError):
    """Raised when a calendar operation receives an invalid date."""


class MonthIndexError(ValueError):
    """Raised for a month index outside 0..11."""


class InvalidDate:
    """Marker for a date that could not be parsed or constructed."""

    _instance: Optional["InvalidDate"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INVALID_DATE"

    def __str__(self) -> str:
        return "Invalid Date"

    def __bool__(self) -> bool:
        return False


INVALID_DATE = InvalidDate()

CalendarDate = Union[datetime, InvalidDate]


def is_valid_date(value) -> bool:
    """Check whether a value is a usable calendar date."""
    return isinstance(value, datetime)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _require_valid(*values) -> None:
    for value in values:
        if not is_valid_date(value):
            raise InvalidDateError("Invalid date")


def utc_date(
    year: int,
    month: int,
    day: int = 1,
    hours: float = 0,
    minutes: float = 0,
    seconds: float = 0,
    milliseconds: float = 0,
) -> CalendarDate:
    """Build a UTC date from components, rolling overflow into larger units.

    ``month`` is zero based. Any component may be out of its natural range:
    month 12 becomes January of the next year, day 32 becomes a day of the
    following month, hour -1 becomes the last hour of the previous day.

    Returns:
        The normalized date, or ``INVALID_DATE`` when a component is not finite
        or the result is outside the representable range.
    """
    components = (year, month, day, hours, minutes, seconds, milliseconds)
    if not all(math.isfinite(component) for component in components):
        return INVALID_DATE

    extra_years, month_index = divmod(int(month), 12)
    try:
        start_of_month = datetime(int(year) + extra_years, month_index + 1, 1, tzinfo=timezone.utc)
        return start_of_month + timedelta(
            days=day - 1,
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            milliseconds=milliseconds,
        )
    except (ValueError, OverflowError):
        return INVALID_DATE


def parse_date(text: Optional[str]) -> CalendarDate:
    """Parse date text (RFC 822, ISO 8601, ...) into a UTC date.

    Text without an offset is read as UTC. Unparsable text yields
    ``INVALID_DATE`` rather than an exception.
    """
    if not isinstance(text, str) or not text.strip():
        return INVALID_DATE
    try:
        parsed = date_parser.parse(text, tzinfos=RFC822_TIMEZONES)
    except (ValueError, OverflowError):
        return INVALID_DATE
    return _as_utc(parsed)


def is_leap_year(full_year: int) -> bool:
    # Divisible-by-4 only; the Gregorian century exceptions are not applied.
    return full_year % 4 == 0


def get_days_in_month(month_index: int, leap_year: bool) -> int:
    if month_index < 0 or month_index > 11:
        raise MonthIndexError(
            f"The number {month_index} is out of the range of valid month indexes (0..11)"
        )
    days_in_month = [
        DAYS_IN_JANUARY,
        DAYS_IN_FEBRUARY_LEAP_YEAR if leap_year else DAYS_IN_FEBRUARY_NON_LEAP_YEAR,
        DAYS_IN_MARCH,
        DAYS_IN_APRIL,
        DAYS_IN_MAY,
        DAYS_IN_JUNE,
        DAYS_IN_JULY,
        DAYS_IN_AUGUST,
        DAYS_IN_SEPTEMBER,
        DAYS_IN_OCTOBER,
        DAYS_IN_NOVEMBER,
        DAYS_IN_DECEMBER,
    ]
    return days_in_month[month_index]


def get_days_in_year(full_year: int) -> int:
    return 366 if is_leap_year(full_year) else 365


def _shift(start_date: CalendarDate, years=0, months=0, days=0, hours=0) -> CalendarDate:
    """Offset selected components of a date and normalize through rollover."""
    _require_valid(start_date)
    start = _as_utc(start_date)
    return utc_date(
        start.year + years,
        start.month - 1 + months,
        start.day + days,
        start.hour + hours,
        start.minute,
        start.second,
        start.microsecond / 1000,
    )


def add_hours_to_date(start_date: CalendarDate, hours_count: int) -> CalendarDate:
    return _shift(start_date, hours=hours_count)


def add_days_to_date(start_date: CalendarDate, day_count: int) -> CalendarDate:
    return _shift(start_date, days=day_count)


def add_weeks_to_date(start_date: CalendarDate, week_count: int) -> CalendarDate:
    return _shift(start_date, days=week_count * 7)


def add_months_to_date(start_date: CalendarDate, month_count: int) -> CalendarDate:
    """Add calendar months; a day past the end of the target month rolls forward.

    For example January 31st plus one month is March 3rd (or 2nd in a leap year).
    """
    return _shift(start_date, months=month_count)


def add_years_to_date(start_date: CalendarDate, year_count: int) -> CalendarDate:
    return _shift(start_date, years=year_count)


def count_days_in_month_range(start_date: CalendarDate, month_count: int) -> int:
    """Sum the lengths of ``month_count`` consecutive months starting at the date's month."""
    _require_valid(start_date)
    start = _as_utc(start_date)
    total = 0
    for offset in range(month_count):
        extra_years, month_index = divmod(start.month - 1 + offset, 12)
        total += get_days_in_month(month_index, is_leap_year(start.year + extra_years))
    return total


def count_days_in_year_range(start_date: CalendarDate, year_count: int) -> int:
    """Sum the lengths of ``year_count`` consecutive years starting at the date's year."""
    _require_valid(start_date)
    year = _as_utc(start_date).year
    return sum(get_days_in_year(year + offset) for offset in range(year_count))


def is_date_before(reference_date: CalendarDate, other_date: CalendarDate) -> bool:
    _require_valid(reference_date, other_date)
    return _as_utc(other_date) > _as_utc(reference_date)


def is_date_after(reference_date: CalendarDate, other_date: CalendarDate) -> bool:
    _require_valid(reference_date, other_date)
    return _as_utc(reference_date) > _as_utc(other_date)


def count_days_between_dates(start_date: CalendarDate, end_date: CalendarDate) -> int:
    """Count calendar days between two dates, in either order.

    Works by summing whole months across the span, then removing the days
    before the start day and after the end day.

    Raises:
        InvalidDateError: If either date is invalid.
    """
    _require_valid(start_date, end_date)
    if is_date_before(start_date, end_date):
        start, end = _as_utc(start_date), _as_utc(end_date)
    elif is_date_after(start_date, end_date):
        start, end = _as_utc(end_date), _as_utc(start_date)
    else:
        return 0

    years = count_years_between_dates(start, end)
    month_count = end.month - start.month + 1
    if years > 0:
        month_count += years * 12

    days_in_months = count_days_in_month_range(start, month_count)
    days_after_end = get_days_in_month(end.month - 1, is_leap_year(end.year)) - end.day
    return days_in_months - start.day - days_after_end


def count_years_between_dates(start_date: CalendarDate, end_date: CalendarDate) -> int:
    """Absolute difference between the calendar years of two dates."""
    _require_valid(start_date, end_date)
    return abs(_as_utc(end_date).year - _as_utc(start_date).year)
