"""Coverage request operations for instructors and admins.

Instructors are identified by the email on their session; every operation
resolves it to an Instructor row first.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from libs.common.datetime_utils import (
    InvalidDateError,
    institutional_now,
    parse_canonical_date,
)
from libs.common.logging import get_logger
from services.lessons_service.errors import (
    DuplicateError,
    InvalidLessonError,
    NotFoundError,
    NotOwnerError,
    coerce_id,
    coerce_optional_id,
)
from services.lessons_service.models import (
    CoverageRequest,
    CoverageStatus,
    Enrollment,
    Instructor,
    Lesson,
)
from services.lessons_service.services.conflicts import lesson_meeting_dates
from services.lessons_service.services.coverage_state import (
    CoverageAction,
    apply_transition,
)
from services.lessons_service.services.enrollment_ops import get_enrollment
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass
class InstructorCoverage:
    own_requests: list = field(default_factory=list)
    available_requests: list = field(default_factory=list)
    accepted_coverage: list = field(default_factory=list)
    accepted_requested_coverage: list = field(default_factory=list)


@dataclass
class CoverageStats:
    pending_requests: int
    accepted_coverage: int
    available_requests: int


@dataclass
class AvailableLesson:
    lesson: Lesson
    participants: list


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def resolve_instructor(db: AsyncSession, email: Optional[str]) -> Instructor:
    if not email:
        raise NotFoundError("instructor", None, message="Instructor not found")
    result = await db.execute(
        select(Instructor).where(func.lower(Instructor.email) == email.strip().lower())
    )
    instructor = result.scalar_one_or_none()
    if not instructor:
        raise NotFoundError("instructor", email)
    return instructor


async def _load_request(db: AsyncSession, request_id: Any) -> CoverageRequest:
    request_id = coerce_id(request_id, "request_id")
    result = await db.execute(
        select(CoverageRequest)
        .where(CoverageRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("coverage_request", request_id)
    return request


async def _list_requests(db: AsyncSession, *conditions) -> list[CoverageRequest]:
    result = await db.execute(
        select(CoverageRequest)
        .where(*conditions)
        .order_by(CoverageRequest.request_date, CoverageRequest.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def create_coverage_request(
    db: AsyncSession,
    *,
    instructor_email: str,
    lesson_id: Any,
    swimmer_id: Any,
    request_date: Any,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
) -> CoverageRequest:
    """Open a pending request for a swimmer the instructor currently teaches.

    ``request_date`` must be one of the lesson's meeting dates; any other day
    raises ``InvalidLessonError``.
    """
    lesson_id = coerce_id(lesson_id, "lesson_id")
    swimmer_id = coerce_optional_id(swimmer_id, "swimmer_id")
    try:
        day = parse_canonical_date(request_date)
    except InvalidDateError as exc:
        raise InvalidLessonError(str(exc), {"field": "request_date"}) from exc

    instructor = await resolve_instructor(db, instructor_email)

    lesson = await db.get(Lesson, lesson_id)
    if not lesson:
        raise NotFoundError("lesson", lesson_id)

    if swimmer_id is not None:
        enrollment = await get_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
        if not enrollment:
            raise NotFoundError(
                "enrollment",
                {"swimmer_id": swimmer_id, "lesson_id": lesson_id},
                message="Swimmer is not enrolled in this lesson",
            )
        teaches = enrollment.assigned_instructor_id == instructor.id
    else:
        assigned = await db.execute(
            select(func.count())
            .select_from(Enrollment)
            .where(
                Enrollment.lesson_id == lesson_id,
                Enrollment.assigned_instructor_id == instructor.id,
            )
        )
        teaches = assigned.scalar_one() > 0
    if not teaches:
        raise NotOwnerError(
            "You can only request coverage for swimmers assigned to you",
            {"lesson_id": lesson_id, "swimmer_id": swimmer_id},
        )

    if day not in lesson_meeting_dates(lesson):
        raise InvalidLessonError(
            "The lesson does not meet on the requested date",
            {"request_date": day.isoformat()},
        )

    existing = await db.execute(
        select(CoverageRequest.id).where(
            CoverageRequest.requesting_instructor_id == instructor.id,
            CoverageRequest.lesson_id == lesson_id,
            CoverageRequest.swimmer_id.is_(None)
            if swimmer_id is None
            else CoverageRequest.swimmer_id == swimmer_id,
            CoverageRequest.request_date == day,
            CoverageRequest.status == CoverageStatus.PENDING,
        )
    )
    if existing.first():
        raise DuplicateError(
            "You already have a pending coverage request for this swimmer on this date",
            {"lesson_id": lesson_id, "swimmer_id": swimmer_id},
        )

    request = CoverageRequest(
        lesson_id=lesson_id,
        swimmer_id=swimmer_id,
        requesting_instructor_id=instructor.id,
        status=CoverageStatus.PENDING,
        request_date=day,
        reason=reason,
        notes=notes,
    )
    db.add(request)
    await db.commit()
    await db.refresh(request)

    logger.info(
        "Instructor %s requested coverage %s for lesson %s on %s",
        instructor.id,
        request.id,
        lesson_id,
        day,
    )
    return request


async def accept_coverage_request(
    db: AsyncSession, *, request_id: Any, instructor_email: str
) -> CoverageRequest:
    instructor = await resolve_instructor(db, instructor_email)
    request = await _load_request(db, request_id)

    apply_transition(request, CoverageAction.ACCEPT, instructor.id)
    await db.commit()
    await db.refresh(request)

    logger.info("Instructor %s accepted coverage request %s", instructor.id, request.id)
    return request


async def re_request_coverage(
    db: AsyncSession, *, request_id: Any, instructor_email: str
) -> CoverageRequest:
    """Give an accepted request back; the relinquishing instructor becomes its owner."""
    instructor = await resolve_instructor(db, instructor_email)
    request = await _load_request(db, request_id)

    apply_transition(request, CoverageAction.RE_REQUEST, instructor.id)
    await db.commit()
    await db.refresh(request)

    logger.info("Instructor %s re-requested coverage %s", instructor.id, request.id)
    return request


async def decline_coverage_request(db: AsyncSession, *, request_id: Any) -> CoverageRequest:
    request = await _load_request(db, request_id)

    apply_transition(request, CoverageAction.DECLINE)
    await db.commit()
    await db.refresh(request)

    logger.info("Declined coverage request %s", request.id)
    return request


async def delete_coverage_request(
    db: AsyncSession, *, request_id: Any, instructor_email: str
) -> None:
    """Hard-delete a request. Only the current owner may delete, at any status."""
    instructor = await resolve_instructor(db, instructor_email)
    request = await _load_request(db, request_id)

    if request.requesting_instructor_id != instructor.id:
        raise NotOwnerError(
            "You can only delete your own coverage requests",
            {"request_id": request.id},
        )

    request_id = request.id
    await db.delete(request)
    await db.commit()
    logger.info("Instructor %s deleted coverage request %s", instructor.id, request_id)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


async def get_instructor_coverage(
    db: AsyncSession, instructor_email: str
) -> InstructorCoverage:
    instructor = await resolve_instructor(db, instructor_email)

    pending = await _list_requests(db, CoverageRequest.status == CoverageStatus.PENDING)
    covering = await _list_requests(
        db,
        CoverageRequest.covering_instructor_id == instructor.id,
        CoverageRequest.status == CoverageStatus.ACCEPTED,
    )
    requested = await _list_requests(
        db,
        CoverageRequest.requesting_instructor_id == instructor.id,
        CoverageRequest.status == CoverageStatus.ACCEPTED,
    )

    return InstructorCoverage(
        own_requests=[r for r in pending if r.requesting_instructor_id == instructor.id],
        available_requests=[r for r in pending if r.requesting_instructor_id != instructor.id],
        accepted_coverage=covering,
        accepted_requested_coverage=requested,
    )


async def get_coverage_stats(db: AsyncSession, instructor_email: str) -> CoverageStats:
    instructor = await resolve_instructor(db, instructor_email)

    async def _count(*conditions) -> int:
        result = await db.execute(
            select(func.count()).select_from(CoverageRequest).where(*conditions)
        )
        return result.scalar_one()

    return CoverageStats(
        pending_requests=await _count(
            CoverageRequest.requesting_instructor_id == instructor.id,
            CoverageRequest.status == CoverageStatus.PENDING,
        ),
        accepted_coverage=await _count(
            CoverageRequest.covering_instructor_id == instructor.id,
            CoverageRequest.status == CoverageStatus.ACCEPTED,
        ),
        available_requests=await _count(
            CoverageRequest.requesting_instructor_id != instructor.id,
            CoverageRequest.status == CoverageStatus.PENDING,
        ),
    )


async def list_coverage_for_lesson(db: AsyncSession, lesson_id: Any) -> list[CoverageRequest]:
    lesson_id = coerce_id(lesson_id, "lesson_id")
    return await _list_requests(db, CoverageRequest.lesson_id == lesson_id)


async def list_coverage_for_swimmer(db: AsyncSession, swimmer_id: Any) -> list[CoverageRequest]:
    swimmer_id = coerce_id(swimmer_id, "swimmer_id")
    return await _list_requests(db, CoverageRequest.swimmer_id == swimmer_id)


async def list_available_lessons(
    db: AsyncSession, instructor_email: str, today: Optional[date] = None
) -> list[AvailableLesson]:
    """Lessons the instructor teaches that have not ended, with their own swimmers."""
    instructor = await resolve_instructor(db, instructor_email)
    today = today or institutional_now().date()

    result = await db.execute(
        select(Enrollment)
        .join(Lesson, Lesson.id == Enrollment.lesson_id)
        .where(
            Enrollment.assigned_instructor_id == instructor.id,
            Lesson.end_date >= today,
        )
        .order_by(Lesson.start_date, Lesson.id, Enrollment.registration_date)
    )
    participants: dict[int, list[Enrollment]] = {}
    for enrollment in result.scalars().all():
        participants.setdefault(enrollment.lesson_id, []).append(enrollment)

    if not participants:
        return []

    lessons = await db.execute(
        select(Lesson)
        .where(Lesson.id.in_(participants))
        .order_by(Lesson.start_date, Lesson.id)
    )
    return [
        AvailableLesson(lesson=lesson, participants=participants[lesson.id])
        for lesson in lessons.scalars().all()
    ]
