"""Instructor assignment with schedule conflict checks."""

from dataclasses import dataclass
from typing import Any, Optional

from libs.common.logging import get_logger
from services.lessons_service.errors import (
    NotFoundError,
    SchedulingConflictError,
    coerce_id,
    coerce_optional_id,
)
from services.lessons_service.models import Enrollment, Instructor, Lesson, User
from services.lessons_service.services.conflicts import has_schedule_conflict
from services.lessons_service.services.enrollment_ops import require_enrollment
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass
class CredentialNotice:
    """First-login credentials an instructor still has to receive."""

    email: str
    name: str
    login_token: str


@dataclass
class AssignmentResult:
    enrollment: Enrollment
    lesson: Lesson
    instructor: Optional[Instructor]
    previous_instructor: Optional[Instructor]
    credential_notice: Optional[CredentialNotice] = None

    @property
    def changed(self) -> bool:
        previous_id = self.previous_instructor.id if self.previous_instructor else None
        current_id = self.instructor.id if self.instructor else None
        return previous_id != current_id


async def find_instructor_conflicts(
    db: AsyncSession, instructor_id: int, lesson: Lesson
) -> list[Lesson]:
    """Other lessons the instructor already teaches that clash with ``lesson``.

    Enrollments in ``lesson`` itself are skipped: an instructor may teach
    several swimmers in the same lesson.
    """
    result = await db.execute(
        select(Lesson)
        .where(
            Lesson.id.in_(
                select(Enrollment.lesson_id).where(
                    Enrollment.assigned_instructor_id == instructor_id
                )
            ),
            Lesson.id != lesson.id,
        )
        .order_by(Lesson.id)
    )
    return [other for other in result.scalars().all() if has_schedule_conflict(lesson, other)]


async def _credential_notice(db: AsyncSession, instructor: Instructor) -> Optional[CredentialNotice]:
    if instructor.user_id is not None:
        user = await db.get(User, instructor.user_id)
    else:
        result = await db.execute(
            select(User).where(func.lower(User.email) == instructor.email.lower())
        )
        user = result.scalar_one_or_none()

    if user and user.must_change_password and user.one_time_login_token:
        return CredentialNotice(
            email=instructor.email,
            name=instructor.name,
            login_token=user.one_time_login_token,
        )
    return None


async def assign_instructor(
    db: AsyncSession,
    *,
    lesson_id: Any,
    swimmer_id: Any,
    instructor_id: Any,
) -> AssignmentResult:
    """Assign (or with ``instructor_id=None`` clear) a swimmer's instructor.

    A non-null assignment is rejected wholesale if the instructor already
    teaches another lesson that overlaps this one.
    """
    lesson_id = coerce_id(lesson_id, "lesson_id")
    swimmer_id = coerce_id(swimmer_id, "swimmer_id")
    instructor_id = coerce_optional_id(instructor_id, "instructor_id")

    lesson = await db.get(Lesson, lesson_id)
    if not lesson:
        raise NotFoundError("lesson", lesson_id)

    enrollment = await require_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)
    previous = (
        await db.get(Instructor, enrollment.assigned_instructor_id)
        if enrollment.assigned_instructor_id is not None
        else None
    )

    if instructor_id is None:
        enrollment.assigned_instructor_id = None
        await db.commit()
        logger.info("Cleared instructor for swimmer %s in lesson %s", swimmer_id, lesson_id)
        return AssignmentResult(
            enrollment=enrollment,
            lesson=lesson,
            instructor=None,
            previous_instructor=previous,
        )

    instructor = await db.get(Instructor, instructor_id)
    if not instructor:
        raise NotFoundError("instructor", instructor_id)

    conflicts = await find_instructor_conflicts(db, instructor_id, lesson)
    if conflicts:
        raise SchedulingConflictError(
            "Instructor has a scheduling conflict with another lesson",
            {
                "instructor_id": instructor_id,
                "conflicting_lesson_ids": [other.id for other in conflicts],
            },
        )

    enrollment.assigned_instructor_id = instructor_id
    await db.commit()

    logger.info(
        "Assigned instructor %s to swimmer %s in lesson %s",
        instructor_id,
        swimmer_id,
        lesson_id,
    )
    return AssignmentResult(
        enrollment=enrollment,
        lesson=lesson,
        instructor=instructor,
        previous_instructor=previous,
        credential_notice=await _credential_notice(db, instructor),
    )


async def unassign_instructor_from_all(db: AsyncSession, instructor_id: Any) -> int:
    """Clear the instructor from every enrollment; returns how many changed."""
    instructor_id = coerce_id(instructor_id, "instructor_id")
    result = await db.execute(
        update(Enrollment)
        .where(Enrollment.assigned_instructor_id == instructor_id)
        .values(assigned_instructor_id=None)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    logger.info(
        "Unassigned instructor %s from %d enrollments", instructor_id, result.rowcount
    )
    return result.rowcount
