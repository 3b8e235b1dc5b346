"""Instructor assignment endpoint."""

import asyncio

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.datetime_utils import (
    calculate_age,
    format_canonical_date,
    format_time_of_day,
)
from libs.common.emails.lessons import (
    send_instructor_assignment_email,
    send_instructor_unassignment_email,
    send_one_time_login_email,
)
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.lessons_service.models import Swimmer
from services.lessons_service.schemas import (
    AssignInstructorRequest,
    AssignInstructorResponse,
    EnrollmentResponse,
)
from services.lessons_service.services.assignment_ops import (
    AssignmentResult,
    assign_instructor,
)
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/lessons", tags=["assignments"])


async def _notify(result: AssignmentResult, swimmer: Swimmer) -> bool:
    """Send assignment emails; returns True if first-login credentials went out."""
    lesson = result.lesson
    lesson_dates = (
        f"{format_canonical_date(lesson.start_date)} - "
        f"{format_canonical_date(lesson.end_date)}"
    )
    sends = []
    if result.instructor:
        sends.append(
            send_instructor_assignment_email(
                to_email=result.instructor.email,
                instructor_name=result.instructor.name,
                swimmer_name=swimmer.name,
                lesson_dates=lesson_dates,
                lesson_time=(
                    f"{format_time_of_day(lesson.start_time)} - "
                    f"{format_time_of_day(lesson.end_time)}"
                ),
                meeting_days=list(lesson.meeting_days or []),
                swimmer_age=calculate_age(swimmer.birthdate) if swimmer.birthdate else None,
                swimmer_notes=result.enrollment.instructor_notes,
            )
        )
    if result.previous_instructor:
        sends.append(
            send_instructor_unassignment_email(
                to_email=result.previous_instructor.email,
                instructor_name=result.previous_instructor.name,
                swimmer_name=swimmer.name,
                lesson_dates=lesson_dates,
            )
        )
    notice = result.credential_notice
    if notice:
        sends.append(
            send_one_time_login_email(
                to_email=notice.email,
                instructor_name=notice.name,
                login_token=notice.login_token,
            )
        )

    results = await asyncio.gather(*sends, return_exceptions=True)
    for outcome in results:
        if isinstance(outcome, Exception):
            logger.warning("Assignment notification failed: %s", outcome)
    return bool(notice) and results[-1] is True


@router.put("/{lesson_id}/assign", response_model=AssignInstructorResponse)
async def assign(
    lesson_id: int,
    body: AssignInstructorRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Assign an instructor to a swimmer's lesson, or clear it with a null id.
    Rejected when the instructor already teaches an overlapping lesson.
    """
    result = await assign_instructor(
        db,
        lesson_id=lesson_id,
        swimmer_id=body.swimmer_id,
        instructor_id=body.instructor_id,
    )

    credentials_sent = False
    if result.changed:
        swimmer = await db.get(Swimmer, body.swimmer_id)
        credentials_sent = await _notify(result, swimmer)

    return AssignInstructorResponse(
        enrollment=EnrollmentResponse.model_validate(result.enrollment),
        previous_instructor_id=(
            result.previous_instructor.id if result.previous_instructor else None
        ),
        credentials_sent=credentials_sent,
    )
