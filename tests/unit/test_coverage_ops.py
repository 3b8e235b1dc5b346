"""Unit tests for coverage request operations."""

from datetime import date, timedelta

import pytest
import pytest_asyncio
from services.lessons_service.errors import (
    AlreadyProcessedError,
    DuplicateError,
    InvalidLessonError,
    NotCoveringInstructorError,
    NotFoundError,
    NotOwnerError,
    NotPendingError,
    SelfAcceptError,
)
from services.lessons_service.models import CoverageRequest, CoverageStatus
from services.lessons_service.services.coverage_ops import (
    accept_coverage_request,
    create_coverage_request,
    decline_coverage_request,
    delete_coverage_request,
    get_coverage_stats,
    get_instructor_coverage,
    list_available_lessons,
    list_coverage_for_lesson,
    list_coverage_for_swimmer,
    re_request_coverage,
)
from sqlalchemy import select
from tests.factories import (
    EnrollmentFactory,
    InstructorFactory,
    LessonFactory,
    SwimmerFactory,
    persist,
)

# June 2024: Mondays are the 3rd, 10th, 17th and 24th
JUNE = {
    "start_date": date(2024, 6, 3),
    "end_date": date(2024, 6, 28),
    "meeting_days": ["Monday"],
}
MONDAY = "06/10/2024"


@pytest_asyncio.fixture
async def staff(db_session):
    """Three instructors, a lesson, and a swimmer taught by ``alice``."""
    alice = InstructorFactory.create(name="Alice", email="alice@example.com")
    bob = InstructorFactory.create(name="Bob", email="bob@example.com")
    carol = InstructorFactory.create(name="Carol", email="carol@example.com")
    lesson = LessonFactory.create(**JUNE)
    swimmer = SwimmerFactory.create(name="Mia")
    db_session.add_all([alice, bob, carol, lesson, swimmer])
    await db_session.commit()
    await persist(
        db_session,
        EnrollmentFactory.create(swimmer.id, lesson.id, assigned_instructor_id=alice.id),
    )
    return {"alice": alice, "bob": bob, "carol": carol, "lesson": lesson, "swimmer": swimmer}


async def _create(db, staff, email="alice@example.com", **overrides):
    values = {
        "instructor_email": email,
        "lesson_id": staff["lesson"].id,
        "swimmer_id": staff["swimmer"].id,
        "request_date": MONDAY,
        "reason": "Out of town",
    }
    values.update(overrides)
    return await create_coverage_request(db, **values)


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_pending_request(db_session, staff):
    request = await _create(db_session, staff)

    assert request.status == CoverageStatus.PENDING
    assert request.requesting_instructor_id == staff["alice"].id
    assert request.covering_instructor_id is None
    assert request.request_date == date(2024, 6, 10)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_resolves_email_case_insensitively(db_session, staff):
    request = await _create(db_session, staff, email="ALICE@example.com")
    assert request.requesting_instructor_id == staff["alice"].id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_duplicate_pending_rejected(db_session, staff):
    await _create(db_session, staff)
    with pytest.raises(DuplicateError):
        await _create(db_session, staff)

    # A different date is a different request
    await _create(db_session, staff, request_date="06/17/2024")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_for_unenrolled_swimmer(db_session, staff):
    other = await persist(db_session, SwimmerFactory.create(name="Leo"))
    with pytest.raises(NotFoundError) as exc_info:
        await _create(db_session, staff, swimmer_id=other.id)
    assert exc_info.value.entity == "enrollment"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_by_instructor_not_teaching_swimmer(db_session, staff):
    with pytest.raises(NotOwnerError):
        await _create(db_session, staff, email="bob@example.com")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_for_whole_lesson(db_session, staff):
    request = await _create(db_session, staff, swimmer_id=None)
    assert request.swimmer_id is None

    with pytest.raises(NotOwnerError):
        await _create(db_session, staff, email="bob@example.com", swimmer_id=None)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_on_non_meeting_day(db_session, staff):
    with pytest.raises(InvalidLessonError):
        await _create(db_session, staff, request_date="06/11/2024")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_unknown_instructor_and_lesson(db_session, staff):
    with pytest.raises(NotFoundError) as exc_info:
        await _create(db_session, staff, email="nobody@example.com")
    assert exc_info.value.entity == "instructor"

    with pytest.raises(NotFoundError) as exc_info:
        await _create(db_session, staff, lesson_id=999)
    assert exc_info.value.entity == "lesson"


# ---------------------------------------------------------------------------
# accept / re-request / decline / delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_self_accept_rejected(db_session, staff):
    request = await _create(db_session, staff)
    with pytest.raises(SelfAcceptError):
        await accept_coverage_request(
            db_session, request_id=request.id, instructor_email="alice@example.com"
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_accept_then_accept_again(db_session, staff):
    request = await _create(db_session, staff)

    accepted = await accept_coverage_request(
        db_session, request_id=request.id, instructor_email="bob@example.com"
    )
    assert accepted.status == CoverageStatus.ACCEPTED
    assert accepted.covering_instructor_id == staff["bob"].id

    with pytest.raises(NotPendingError):
        await accept_coverage_request(
            db_session, request_id=request.id, instructor_email="carol@example.com"
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_re_request_transfers_delete_rights(db_session, staff):
    request = await _create(db_session, staff)
    request_id = request.id
    await accept_coverage_request(
        db_session, request_id=request_id, instructor_email="bob@example.com"
    )

    reopened = await re_request_coverage(
        db_session, request_id=request_id, instructor_email="bob@example.com"
    )
    assert reopened.status == CoverageStatus.PENDING
    assert reopened.requesting_instructor_id == staff["bob"].id
    assert reopened.covering_instructor_id is None

    with pytest.raises(NotOwnerError):
        await delete_coverage_request(
            db_session, request_id=request_id, instructor_email="alice@example.com"
        )

    await delete_coverage_request(
        db_session, request_id=request_id, instructor_email="bob@example.com"
    )
    remaining = await db_session.execute(
        select(CoverageRequest).where(CoverageRequest.id == request_id)
    )
    assert remaining.scalar_one_or_none() is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_re_request_by_non_covering_instructor(db_session, staff):
    request = await _create(db_session, staff)
    await accept_coverage_request(
        db_session, request_id=request.id, instructor_email="bob@example.com"
    )
    with pytest.raises(NotCoveringInstructorError):
        await re_request_coverage(
            db_session, request_id=request.id, instructor_email="carol@example.com"
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_original_requester_can_accept_after_re_request(db_session, staff):
    request = await _create(db_session, staff)
    await accept_coverage_request(
        db_session, request_id=request.id, instructor_email="bob@example.com"
    )
    await re_request_coverage(
        db_session, request_id=request.id, instructor_email="bob@example.com"
    )

    accepted = await accept_coverage_request(
        db_session, request_id=request.id, instructor_email="alice@example.com"
    )
    assert accepted.covering_instructor_id == staff["alice"].id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_accepted_request_by_owner(db_session, staff):
    """Deletion is not restricted by status."""
    request = await _create(db_session, staff)
    await accept_coverage_request(
        db_session, request_id=request.id, instructor_email="bob@example.com"
    )
    await delete_coverage_request(
        db_session, request_id=request.id, instructor_email="alice@example.com"
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_decline_pending_then_processed(db_session, staff):
    request = await _create(db_session, staff)

    declined = await decline_coverage_request(db_session, request_id=request.id)
    assert declined.status == CoverageStatus.DECLINED

    with pytest.raises(AlreadyProcessedError):
        await decline_coverage_request(db_session, request_id=request.id)
    with pytest.raises(NotFoundError):
        await decline_coverage_request(db_session, request_id=999)


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_dashboard_and_stats(db_session, staff):
    first = await _create(db_session, staff)
    second = await _create(db_session, staff, request_date="06/17/2024")
    await accept_coverage_request(
        db_session, request_id=second.id, instructor_email="bob@example.com"
    )

    alice_view = await get_instructor_coverage(db_session, "alice@example.com")
    assert [r.id for r in alice_view.own_requests] == [first.id]
    assert alice_view.available_requests == []
    assert [r.id for r in alice_view.accepted_requested_coverage] == [second.id]

    bob_view = await get_instructor_coverage(db_session, "bob@example.com")
    assert [r.id for r in bob_view.available_requests] == [first.id]
    assert [r.id for r in bob_view.accepted_coverage] == [second.id]

    alice_stats = await get_coverage_stats(db_session, "alice@example.com")
    assert (
        alice_stats.pending_requests,
        alice_stats.accepted_coverage,
        alice_stats.available_requests,
    ) == (1, 0, 0)
    bob_stats = await get_coverage_stats(db_session, "bob@example.com")
    assert (
        bob_stats.pending_requests,
        bob_stats.accepted_coverage,
        bob_stats.available_requests,
    ) == (0, 1, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_admin_lists_by_lesson_and_swimmer(db_session, staff):
    request = await _create(db_session, staff)

    by_lesson = await list_coverage_for_lesson(db_session, staff["lesson"].id)
    by_swimmer = await list_coverage_for_swimmer(db_session, staff["swimmer"].id)

    assert [r.id for r in by_lesson] == [request.id]
    assert [r.id for r in by_swimmer] == [request.id]
    assert await list_coverage_for_swimmer(db_session, 999) == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_available_lessons_only_include_own_swimmers(db_session, staff):
    other = await persist(db_session, SwimmerFactory.create(name="Noah"))
    await persist(
        db_session,
        EnrollmentFactory.create(
            other.id, staff["lesson"].id, assigned_instructor_id=staff["bob"].id
        ),
    )

    lessons = await list_available_lessons(
        db_session, "alice@example.com", today=date(2024, 6, 1)
    )
    assert [item.lesson.id for item in lessons] == [staff["lesson"].id]
    assert [e.swimmer_id for e in lessons[0].participants] == [staff["swimmer"].id]

    ended = await list_available_lessons(
        db_session, "alice@example.com", today=date(2024, 6, 28) + timedelta(days=1)
    )
    assert ended == []
