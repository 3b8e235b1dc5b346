"""Public registration window for lessons.

Registration closes at the end of the day before a lesson starts (one-day
buffer): a lesson starting Monday accepts registrations through Sunday
23:59:59.999999 institutional time. A lesson that has already started is
closed regardless of the cutoff.
"""

from datetime import datetime, time, timedelta
from typing import Any, Optional

from libs.common.datetime_utils import (
    DateLike,
    institutional_now,
    institutional_tz,
    parse_canonical_date,
    to_institutional,
)

REGISTRATION_BUFFER_DAYS = 1


def _start_date_of(lesson: Any) -> DateLike:
    if isinstance(lesson, dict):
        return lesson["start_date"]
    return getattr(lesson, "start_date", lesson)


def _resolve_now(now: Optional[datetime]) -> datetime:
    return institutional_now() if now is None else to_institutional(now)


def lesson_start_moment(lesson: Any) -> datetime:
    """Midnight of the lesson's start date, institutional timezone."""
    start = parse_canonical_date(_start_date_of(lesson))
    return datetime.combine(start, time.min, tzinfo=institutional_tz())


def registration_cutoff(lesson: Any) -> datetime:
    """Last instant at which public registration is allowed."""
    start = parse_canonical_date(_start_date_of(lesson))
    cutoff_day = start - timedelta(days=REGISTRATION_BUFFER_DAYS)
    return datetime.combine(cutoff_day, time.max, tzinfo=institutional_tz())


def is_registration_allowed(lesson: Any, now: Optional[datetime] = None) -> bool:
    return _resolve_now(now) <= registration_cutoff(lesson)


def has_lesson_started(lesson: Any, now: Optional[datetime] = None) -> bool:
    return _resolve_now(now) >= lesson_start_moment(lesson)
