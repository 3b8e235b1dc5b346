"""Datetime utilities for timezone-aware timestamps and lesson calendar dates.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

Calendar dates travel as ``MM/DD/YYYY`` strings and times of day as ``HH:MM``
(24h) strings, interpreted in the institutional timezone (``settings.TIMEZONE``).
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo

from libs.common.config import get_settings

DateLike = Union[str, date, datetime]
TimeLike = Union[str, time, datetime]

CANONICAL_DATE_FORMAT = "%m/%d/%Y"
ISO_DATE_FORMAT = "%Y-%m-%d"

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_CANONICAL_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")
_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class InvalidDateError(ValueError):
    """Raised when a date or time value cannot be parsed."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date or time value: {value!r}")


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def institutional_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().TIMEZONE)


def institutional_now() -> datetime:
    """Current wall-clock time in the institutional timezone."""
    return datetime.now(institutional_tz())


def to_institutional(value: datetime) -> datetime:
    """Convert a datetime into the institutional timezone.

    Naive datetimes are taken to already be institutional wall-clock time.
    """
    tz = institutional_tz()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def parse_canonical_date(value: DateLike) -> date:
    """Parse ``MM/DD/YYYY``, ``YYYY-MM-DD`` or a native date/datetime.

    Raises InvalidDateError instead of echoing malformed input back.
    """
    if isinstance(value, datetime):
        return to_institutional(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        try:
            if _CANONICAL_RE.match(raw):
                return datetime.strptime(raw, CANONICAL_DATE_FORMAT).date()
            if _ISO_RE.match(raw):
                return datetime.strptime(raw, ISO_DATE_FORMAT).date()
        except ValueError as exc:
            raise InvalidDateError(value) from exc
    raise InvalidDateError(value)


def format_canonical_date(value: DateLike) -> str:
    """Render a date in canonical ``MM/DD/YYYY`` form."""
    return parse_canonical_date(value).strftime(CANONICAL_DATE_FORMAT)


def parse_time_of_day(value: TimeLike) -> time:
    """Parse ``HH:MM`` / ``HH:MM:SS`` strings, times, or datetimes.

    Datetimes are converted to institutional wall-clock time first. The result
    is a naive time with seconds and microseconds dropped.
    """
    if isinstance(value, datetime):
        return to_institutional(value).time().replace(second=0, microsecond=0)
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if isinstance(value, str):
        match = _TIME_RE.match(value.strip())
        if match:
            hours, minutes = int(match.group(1)), int(match.group(2))
            if hours < 24 and minutes < 60:
                return time(hours, minutes)
    raise InvalidDateError(value)


def format_time_of_day(value: TimeLike) -> str:
    return parse_time_of_day(value).strftime("%H:%M")


def normalize_weekdays(value: Union[str, Iterable[str], None]) -> list[str]:
    """Normalize ``"Monday, Wednesday"`` or an iterable into weekday names.

    Names are title-cased and de-duplicated in week order; unknown names raise
    ValueError.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    else:
        items = [str(part).strip() for part in value]

    seen = set()
    for item in items:
        if not item:
            continue
        name = item.capitalize()
        if name not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday: {item!r}")
        seen.add(name)
    return [name for name in WEEKDAY_NAMES if name in seen]


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def expand_weekdays_in_range(
    weekdays: Union[str, Iterable[str]], start: DateLike, end: DateLike
) -> list[date]:
    """Every date from start to end inclusive whose weekday is in ``weekdays``."""
    wanted = set(normalize_weekdays(weekdays))
    current = parse_canonical_date(start)
    last = parse_canonical_date(end)

    dates = []
    while current <= last:
        if weekday_name(current) in wanted:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def calculate_age(birthdate: Optional[DateLike], today: Optional[date] = None) -> int:
    """Whole years elapsed since birthdate. A missing birthdate yields 0."""
    if not birthdate:
        return 0
    born = parse_canonical_date(birthdate)
    today = today or institutional_now().date()

    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def current_date_string() -> str:
    """Today's date in canonical form, institutional timezone."""
    return institutional_now().date().strftime(CANONICAL_DATE_FORMAT)


def is_future_date(value: DateLike, today: Optional[date] = None) -> bool:
    """True if the date is today or later."""
    today = today or institutional_now().date()
    return parse_canonical_date(value) >= today
