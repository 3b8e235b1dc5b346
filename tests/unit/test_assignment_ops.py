"""Unit tests for instructor assignment and conflict checks."""

from datetime import date, time

import pytest
from services.lessons_service.errors import NotFoundError, SchedulingConflictError
from services.lessons_service.models import Enrollment, UserRole
from services.lessons_service.services.assignment_ops import (
    assign_instructor,
    find_instructor_conflicts,
    unassign_instructor_from_all,
)
from services.lessons_service.services.enrollment_ops import get_enrollment
from sqlalchemy import select
from tests.factories import (
    EnrollmentFactory,
    InstructorFactory,
    LessonFactory,
    SwimmerFactory,
    UserFactory,
    persist,
)

JUNE = {"start_date": date(2024, 6, 3), "end_date": date(2024, 6, 28)}


async def _enrolled(db, lesson, name="Swimmer", **enrollment_fields):
    swimmer = await persist(db, SwimmerFactory.create(name=name))
    await persist(db, EnrollmentFactory.create(swimmer.id, lesson.id, **enrollment_fields))
    return swimmer


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_instructor_success(db_session):
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    swimmer = await _enrolled(db_session, lesson)
    coach = await persist(db_session, InstructorFactory.create())

    result = await assign_instructor(
        db_session, lesson_id=lesson.id, swimmer_id=swimmer.id, instructor_id=coach.id
    )

    assert result.enrollment.assigned_instructor_id == coach.id
    assert result.instructor.id == coach.id
    assert result.previous_instructor is None
    assert result.credential_notice is None
    assert result.changed


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_rejects_overlapping_lesson(db_session):
    coach = await persist(db_session, InstructorFactory.create())
    morning = await persist(
        db_session,
        LessonFactory.create(meeting_days=["Monday"], start_time=time(9, 0), end_time=time(9, 30), **JUNE),
    )
    overlapping = await persist(
        db_session,
        LessonFactory.create(
            meeting_days=["Monday", "Friday"], start_time=time(9, 15), end_time=time(9, 45), **JUNE
        ),
    )
    await _enrolled(db_session, morning, assigned_instructor_id=coach.id)
    swimmer = await _enrolled(db_session, overlapping, name="Second")

    with pytest.raises(SchedulingConflictError) as exc_info:
        await assign_instructor(
            db_session, lesson_id=overlapping.id, swimmer_id=swimmer.id, instructor_id=coach.id
        )
    assert exc_info.value.details["conflicting_lesson_ids"] == [morning.id]

    enrollment = await get_enrollment(db_session, swimmer_id=swimmer.id, lesson_id=overlapping.id)
    assert enrollment.assigned_instructor_id is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_allows_back_to_back_and_other_days(db_session):
    coach = await persist(db_session, InstructorFactory.create())
    morning = await persist(
        db_session,
        LessonFactory.create(meeting_days=["Monday"], start_time=time(9, 0), end_time=time(9, 30), **JUNE),
    )
    next_slot = await persist(
        db_session,
        LessonFactory.create(meeting_days=["Monday"], start_time=time(9, 30), end_time=time(10, 0), **JUNE),
    )
    tuesday = await persist(
        db_session,
        LessonFactory.create(meeting_days=["Tuesday"], start_time=time(9, 0), end_time=time(9, 30), **JUNE),
    )
    await _enrolled(db_session, morning, assigned_instructor_id=coach.id)
    second = await _enrolled(db_session, next_slot, name="Second")
    third = await _enrolled(db_session, tuesday, name="Third")

    await assign_instructor(
        db_session, lesson_id=next_slot.id, swimmer_id=second.id, instructor_id=coach.id
    )
    await assign_instructor(
        db_session, lesson_id=tuesday.id, swimmer_id=third.id, instructor_id=coach.id
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_same_lesson_multiple_swimmers_allowed(db_session):
    coach = await persist(db_session, InstructorFactory.create())
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    await _enrolled(db_session, lesson, name="First", assigned_instructor_id=coach.id)
    second = await _enrolled(db_session, lesson, name="Second")

    assert await find_instructor_conflicts(db_session, coach.id, lesson) == []
    result = await assign_instructor(
        db_session, lesson_id=lesson.id, swimmer_id=second.id, instructor_id=coach.id
    )
    assert result.enrollment.assigned_instructor_id == coach.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_clear_assignment_skips_conflict_check(db_session):
    coach = await persist(db_session, InstructorFactory.create())
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    swimmer = await _enrolled(db_session, lesson, assigned_instructor_id=coach.id)

    result = await assign_instructor(
        db_session, lesson_id=lesson.id, swimmer_id=swimmer.id, instructor_id=None
    )

    assert result.enrollment.assigned_instructor_id is None
    assert result.previous_instructor.id == coach.id
    assert result.instructor is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reassign_reports_previous_instructor(db_session):
    old_coach = await persist(db_session, InstructorFactory.create(name="Old"))
    new_coach = await persist(db_session, InstructorFactory.create(name="New"))
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    swimmer = await _enrolled(db_session, lesson, assigned_instructor_id=old_coach.id)

    result = await assign_instructor(
        db_session, lesson_id=lesson.id, swimmer_id=swimmer.id, instructor_id=new_coach.id
    )
    assert result.previous_instructor.id == old_coach.id
    assert result.instructor.id == new_coach.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_surfaces_one_time_login_token(db_session):
    user = await persist(
        db_session,
        UserFactory.create(
            role=UserRole.INSTRUCTOR,
            must_change_password=True,
            one_time_login_token="otl-123",
        ),
    )
    coach = await persist(
        db_session, InstructorFactory.create(email=user.email, user_id=user.id)
    )
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    swimmer = await _enrolled(db_session, lesson)

    result = await assign_instructor(
        db_session, lesson_id=lesson.id, swimmer_id=swimmer.id, instructor_id=coach.id
    )

    assert result.credential_notice is not None
    assert result.credential_notice.login_token == "otl-123"
    assert result.credential_notice.email == coach.email


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_matches_account_by_email_without_user_link(db_session):
    user = await persist(
        db_session,
        UserFactory.create(
            email="New.Coach@example.com",
            role=UserRole.INSTRUCTOR,
            must_change_password=True,
            one_time_login_token="otl-456",
        ),
    )
    coach = await persist(db_session, InstructorFactory.create(email="new.coach@example.com"))
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    swimmer = await _enrolled(db_session, lesson)

    result = await assign_instructor(
        db_session, lesson_id=lesson.id, swimmer_id=swimmer.id, instructor_id=coach.id
    )
    assert result.credential_notice.login_token == user.one_time_login_token


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_unknown_entities(db_session):
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    swimmer = await _enrolled(db_session, lesson)

    with pytest.raises(NotFoundError) as exc_info:
        await assign_instructor(db_session, lesson_id=999, swimmer_id=swimmer.id, instructor_id=1)
    assert exc_info.value.entity == "lesson"

    with pytest.raises(NotFoundError) as exc_info:
        await assign_instructor(db_session, lesson_id=lesson.id, swimmer_id=999, instructor_id=1)
    assert exc_info.value.entity == "enrollment"

    with pytest.raises(NotFoundError) as exc_info:
        await assign_instructor(
            db_session, lesson_id=lesson.id, swimmer_id=swimmer.id, instructor_id=999
        )
    assert exc_info.value.entity == "instructor"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unassign_instructor_from_all(db_session):
    coach = await persist(db_session, InstructorFactory.create())
    lesson = await persist(db_session, LessonFactory.create(**JUNE))
    await _enrolled(db_session, lesson, name="A", assigned_instructor_id=coach.id)
    await _enrolled(db_session, lesson, name="B", assigned_instructor_id=coach.id)

    changed = await unassign_instructor_from_all(db_session, coach.id)

    assert changed == 2
    result = await db_session.execute(
        select(Enrollment).where(Enrollment.assigned_instructor_id == coach.id)
    )
    assert result.scalars().all() == []
