"""Capacity and enrollment operations: registration, cancellation and lesson upkeep."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

from libs.common.datetime_utils import (
    InvalidDateError,
    format_canonical_date,
    institutional_now,
    normalize_weekdays,
    parse_canonical_date,
    parse_time_of_day,
)
from libs.common.logging import get_logger
from services.lessons_service.errors import (
    DuplicateError,
    InvalidLessonError,
    LessonFullError,
    NotFoundError,
    RegistrationClosedError,
    coerce_id,
    coerce_optional_id,
)
from services.lessons_service.models import Enrollment, Instructor, Lesson, Swimmer
from services.lessons_service.services.conflicts import lesson_meeting_dates
from services.lessons_service.services.registration_window import (
    has_lesson_started,
    is_registration_allowed,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


@dataclass
class LessonSlot:
    lesson: Lesson
    registered: int

    @property
    def remaining(self) -> int:
        return max(self.lesson.max_slots - self.registered, 0)


# ---------------------------------------------------------------------------
# Shared lookups
# ---------------------------------------------------------------------------


async def lock_lesson(db: AsyncSession, lesson_id: int) -> Lesson:
    """Load a lesson with a row lock held until the transaction ends."""
    result = await db.execute(
        select(Lesson).where(Lesson.id == lesson_id).with_for_update()
    )
    lesson = result.scalar_one_or_none()
    if not lesson:
        raise NotFoundError("lesson", lesson_id)
    return lesson


async def count_enrollments(db: AsyncSession, lesson_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Enrollment)
        .where(Enrollment.lesson_id == lesson_id)
    )
    return result.scalar_one()


async def get_enrollment(
    db: AsyncSession, *, swimmer_id: int, lesson_id: int
) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.swimmer_id == swimmer_id,
            Enrollment.lesson_id == lesson_id,
        )
    )
    return result.scalar_one_or_none()


async def require_enrollment(
    db: AsyncSession, *, swimmer_id: Any, lesson_id: Any
) -> Enrollment:
    swimmer_id = coerce_id(swimmer_id, "swimmer_id")
    lesson_id = coerce_id(lesson_id, "lesson_id")
    enrollment = await get_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
    if not enrollment:
        raise NotFoundError(
            "enrollment",
            {"swimmer_id": swimmer_id, "lesson_id": lesson_id},
            message="Swimmer is not enrolled in this lesson",
        )
    return enrollment


async def get_lesson_with_participants(db: AsyncSession, lesson_id: Any) -> Lesson:
    """Fresh view of a lesson and its enrollments, ordered by registration."""
    lesson_id = coerce_id(lesson_id, "lesson_id")
    result = await db.execute(
        select(Lesson)
        .where(Lesson.id == lesson_id)
        .options(selectinload(Lesson.enrollments))
        .execution_options(populate_existing=True)
    )
    lesson = result.scalar_one_or_none()
    if not lesson:
        raise NotFoundError("lesson", lesson_id)
    return lesson


async def list_lessons_with_participants(db: AsyncSession) -> list[Lesson]:
    result = await db.execute(
        select(Lesson)
        .options(selectinload(Lesson.enrollments))
        .order_by(Lesson.start_date, Lesson.start_time, Lesson.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_lesson_slots(
    db: AsyncSession, today: Optional[date] = None
) -> list[LessonSlot]:
    """Lessons that have not ended yet, with their registered counts."""
    today = today or institutional_now().date()
    counts = (
        select(Enrollment.lesson_id, func.count().label("registered"))
        .group_by(Enrollment.lesson_id)
        .subquery()
    )
    result = await db.execute(
        select(Lesson, func.coalesce(counts.c.registered, 0))
        .outerjoin(counts, counts.c.lesson_id == Lesson.id)
        .where(Lesson.end_date >= today)
        .order_by(Lesson.start_date, Lesson.start_time, Lesson.id)
    )
    return [LessonSlot(lesson=lesson, registered=registered) for lesson, registered in result.all()]


def _canonical_dates(values: Optional[Iterable[Any]]) -> list[str]:
    if not values:
        return []
    try:
        parsed = {parse_canonical_date(value) for value in values}
    except InvalidDateError as exc:
        raise InvalidLessonError(str(exc), {"value": exc.value}) from exc
    return [format_canonical_date(day) for day in sorted(parsed)]


def _check_meeting_dates(lesson: Lesson, dates: list[str]) -> None:
    meeting = {format_canonical_date(day) for day in lesson_meeting_dates(lesson)}
    invalid = [value for value in dates if value not in meeting]
    if invalid:
        raise InvalidLessonError(
            "Dates are not meeting dates of this lesson",
            {"dates": invalid},
        )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_swimmer(
    db: AsyncSession,
    *,
    swimmer_id: Any,
    lesson_id: Any,
    preferred_instructor_id: Any = None,
    instructor_notes: Optional[str] = None,
    missing_dates: Optional[Iterable[Any]] = None,
    now: Optional[datetime] = None,
) -> tuple[Enrollment, Lesson]:
    """Register a swimmer into a lesson.

    Checks run in a fixed order and fail fast: lesson exists, lesson has not
    started, registration cutoff not passed, capacity left, swimmer exists,
    not already enrolled. The lesson row stays locked from the capacity check
    until commit so concurrent registrations see each other's inserts.

    Returns ``(enrollment, lesson)`` where lesson carries its fresh participants.
    """
    swimmer_id = coerce_id(swimmer_id, "swimmer_id")
    lesson_id = coerce_id(lesson_id, "lesson_id")
    preferred_instructor_id = coerce_optional_id(
        preferred_instructor_id, "preferred_instructor_id"
    )

    lesson = await lock_lesson(db, lesson_id)

    if has_lesson_started(lesson, now):
        raise RegistrationClosedError(
            "already_started", "This lesson has already started"
        )
    if not is_registration_allowed(lesson, now):
        raise RegistrationClosedError(
            "past_cutoff",
            "Registration for this lesson has closed; please join the waitlist",
        )

    registered = await count_enrollments(db, lesson_id)
    if registered >= lesson.max_slots:
        raise LessonFullError(lesson_id, lesson.max_slots)

    if not await db.get(Swimmer, swimmer_id):
        raise NotFoundError("swimmer", swimmer_id)

    if await get_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id):
        raise DuplicateError(
            "Swimmer is already registered for this lesson",
            {"swimmer_id": swimmer_id, "lesson_id": lesson_id},
        )

    if preferred_instructor_id is not None and not await db.get(
        Instructor, preferred_instructor_id
    ):
        raise NotFoundError("instructor", preferred_instructor_id)

    absent = _canonical_dates(missing_dates)
    if absent:
        _check_meeting_dates(lesson, absent)

    enrollment = Enrollment(
        swimmer_id=swimmer_id,
        lesson_id=lesson_id,
        preferred_instructor_id=preferred_instructor_id,
        instructor_notes=instructor_notes,
        missing_dates=absent,
    )
    db.add(enrollment)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateError(
            "Swimmer is already registered for this lesson",
            {"swimmer_id": swimmer_id, "lesson_id": lesson_id},
        ) from exc

    await db.commit()

    logger.info(
        "Registered swimmer %s in lesson %s (%d/%d)",
        swimmer_id,
        lesson_id,
        registered + 1,
        lesson.max_slots,
    )
    return enrollment, await get_lesson_with_participants(db, lesson_id)


async def cancel_enrollment(db: AsyncSession, *, swimmer_id: Any, lesson_id: Any) -> None:
    """Delete the enrollment. Does not promote anyone from the waitlist."""
    enrollment = await require_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
    swimmer_id, lesson_id = enrollment.swimmer_id, enrollment.lesson_id
    await db.delete(enrollment)
    await db.commit()
    logger.info("Cancelled enrollment of swimmer %s in lesson %s", swimmer_id, lesson_id)


# ---------------------------------------------------------------------------
# Lesson management
# ---------------------------------------------------------------------------

LESSON_FIELDS = (
    "start_date",
    "end_date",
    "start_time",
    "end_time",
    "meeting_days",
    "max_slots",
    "exception_dates",
)


def _normalize_lesson_fields(values: dict) -> dict:
    normalized = {}
    try:
        for field, value in values.items():
            if field in ("start_date", "end_date"):
                normalized[field] = parse_canonical_date(value)
            elif field in ("start_time", "end_time"):
                normalized[field] = parse_time_of_day(value)
            elif field == "meeting_days":
                normalized[field] = normalize_weekdays(value)
            elif field == "exception_dates":
                normalized[field] = _canonical_dates(value)
            elif field == "max_slots":
                normalized[field] = int(value)
            else:
                raise InvalidLessonError(f"Unknown lesson field: {field}")
    except (InvalidDateError, ValueError, TypeError) as exc:
        raise InvalidLessonError(str(exc), {"field": field}) from exc
    return normalized


def _validate_lesson(lesson: Lesson) -> None:
    if lesson.start_date > lesson.end_date:
        raise InvalidLessonError("start_date must not be after end_date")
    if lesson.start_time >= lesson.end_time:
        raise InvalidLessonError("start_time must be before end_time")
    if lesson.max_slots < 1:
        raise InvalidLessonError("max_slots must be at least 1")
    if not lesson.meeting_days:
        raise InvalidLessonError("meeting_days must name at least one weekday")


async def create_lesson(db: AsyncSession, **values: Any) -> Lesson:
    missing = [
        field for field in LESSON_FIELDS
        if field != "exception_dates" and values.get(field) is None
    ]
    if missing:
        raise InvalidLessonError("Missing lesson fields", {"fields": missing})

    fields = _normalize_lesson_fields(
        {key: value for key, value in values.items() if value is not None}
    )
    fields.setdefault("exception_dates", [])
    lesson = Lesson(**fields)
    _validate_lesson(lesson)

    db.add(lesson)
    await db.commit()
    await db.refresh(lesson)

    logger.info("Created lesson %s", lesson.id)
    return await get_lesson_with_participants(db, lesson.id)


async def update_lesson(db: AsyncSession, lesson_id: Any, changes: dict) -> Lesson:
    """Apply partial changes. Lowering capacity never evicts existing enrollments."""
    lesson = await get_lesson_with_participants(db, lesson_id)

    for field, value in _normalize_lesson_fields(
        {key: value for key, value in changes.items() if value is not None}
    ).items():
        setattr(lesson, field, value)
    try:
        _validate_lesson(lesson)
    except InvalidLessonError:
        await db.rollback()
        raise

    await db.commit()
    logger.info("Updated lesson %s: %s", lesson.id, sorted(changes))
    return await get_lesson_with_participants(db, lesson.id)


async def add_exception_dates(
    db: AsyncSession, lesson_id: Any, dates: Iterable[Any]
) -> Lesson:
    lesson = await get_lesson_with_participants(db, lesson_id)
    additions = _canonical_dates(dates)

    start, end = lesson.start_date, lesson.end_date
    outside = [value for value in additions if not start <= parse_canonical_date(value) <= end]
    if outside:
        raise InvalidLessonError(
            "Exception dates must fall within the lesson's date range",
            {"dates": outside},
        )

    lesson.exception_dates = _canonical_dates(list(lesson.exception_dates or []) + additions)
    await db.commit()
    logger.info("Added exception dates %s to lesson %s", additions, lesson.id)
    return await get_lesson_with_participants(db, lesson.id)


async def remove_exception_dates(
    db: AsyncSession, lesson_id: Any, dates: Iterable[Any]
) -> Lesson:
    lesson = await get_lesson_with_participants(db, lesson_id)
    removals = set(_canonical_dates(dates))
    lesson.exception_dates = [
        value for value in lesson.exception_dates or [] if value not in removals
    ]
    await db.commit()
    logger.info("Removed exception dates %s from lesson %s", sorted(removals), lesson.id)
    return await get_lesson_with_participants(db, lesson.id)


# ---------------------------------------------------------------------------
# Enrollment details
# ---------------------------------------------------------------------------


async def add_missing_dates(
    db: AsyncSession, *, swimmer_id: Any, lesson_id: Any, dates: Iterable[Any]
) -> Enrollment:
    enrollment = await require_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
    lesson = await db.get(Lesson, enrollment.lesson_id)

    additions = _canonical_dates(dates)
    _check_meeting_dates(lesson, additions)

    current = list(enrollment.missing_dates or [])
    already = [value for value in additions if value in current]
    if already:
        raise DuplicateError("Dates are already marked as missing", {"dates": already})

    enrollment.missing_dates = _canonical_dates(current + additions)
    await db.commit()
    return enrollment


async def remove_missing_dates(
    db: AsyncSession, *, swimmer_id: Any, lesson_id: Any, dates: Iterable[Any]
) -> Enrollment:
    enrollment = await require_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
    removals = set(_canonical_dates(dates))
    enrollment.missing_dates = [
        value for value in enrollment.missing_dates or [] if value not in removals
    ]
    await db.commit()
    return enrollment


async def update_instructor_notes(
    db: AsyncSession, *, swimmer_id: Any, lesson_id: Any, notes: Optional[str]
) -> Enrollment:
    enrollment = await require_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
    enrollment.instructor_notes = notes
    await db.commit()
    return enrollment


async def update_payment_status(
    db: AsyncSession, *, swimmer_id: Any, lesson_id: Any, paid: bool
) -> Enrollment:
    """Mark a registration paid or unpaid."""
    enrollment = await require_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
    enrollment.payment_status = bool(paid)
    await db.commit()
    logger.info(
        "Marked enrollment of swimmer %s in lesson %s as %s",
        enrollment.swimmer_id,
        enrollment.lesson_id,
        "paid" if enrollment.payment_status else "unpaid",
    )
    return enrollment
