"""Schedule conflict detection between recurring lessons.

Two lessons conflict when their date ranges overlap, they share a meeting
day, and their daily time windows overlap. Time windows are half-open
``[start, end)``: a lesson ending at 09:30 does not clash with one starting
at 09:30. All times are compared as institutional wall-clock times.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Any, Iterable, Union

from libs.common.datetime_utils import (
    expand_weekdays_in_range,
    normalize_weekdays,
    parse_canonical_date,
    parse_time_of_day,
)


@dataclass(frozen=True)
class LessonSchedule:
    start_date: date
    end_date: date
    meeting_days: frozenset
    start_time: time
    end_time: time

    @classmethod
    def from_lesson(cls, lesson: Any) -> "LessonSchedule":
        """Build from a Lesson model, a schema, or a mapping with the same keys."""
        if isinstance(lesson, LessonSchedule):
            return lesson

        def _get(name):
            if isinstance(lesson, dict):
                return lesson[name]
            return getattr(lesson, name)

        return cls(
            start_date=parse_canonical_date(_get("start_date")),
            end_date=parse_canonical_date(_get("end_date")),
            meeting_days=frozenset(normalize_weekdays(_get("meeting_days"))),
            start_time=parse_time_of_day(_get("start_time")),
            end_time=parse_time_of_day(_get("end_time")),
        )


ScheduleLike = Union[LessonSchedule, Any]


def dates_overlap(a: LessonSchedule, b: LessonSchedule) -> bool:
    return a.start_date <= b.end_date and a.end_date >= b.start_date


def days_overlap(a: Iterable[str], b: Iterable[str]) -> bool:
    return bool(set(a) & set(b))


def times_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    return not (end_a <= start_b or end_b <= start_a)


def has_schedule_conflict(lesson_a: ScheduleLike, lesson_b: ScheduleLike) -> bool:
    """True only if dates, meeting days and daily times all overlap."""
    a = LessonSchedule.from_lesson(lesson_a)
    b = LessonSchedule.from_lesson(lesson_b)

    if not dates_overlap(a, b):
        return False
    if not days_overlap(a.meeting_days, b.meeting_days):
        return False
    return times_overlap(a.start_time, a.end_time, b.start_time, b.end_time)


def lesson_meeting_dates(lesson: Any) -> list[date]:
    """Dates the lesson actually meets: weekday matches minus exception dates."""
    schedule = LessonSchedule.from_lesson(lesson)
    raw_exceptions = (
        lesson.get("exception_dates") if isinstance(lesson, dict)
        else getattr(lesson, "exception_dates", None)
    )
    exceptions = {parse_canonical_date(value) for value in raw_exceptions or []}
    return [
        day
        for day in expand_weekdays_in_range(
            schedule.meeting_days, schedule.start_date, schedule.end_date
        )
        if day not in exceptions
    ]
