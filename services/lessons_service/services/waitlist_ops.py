"""Waitlist operations.

The waitlist is a single queue shared by every lesson: swimmers wait for any
opening and an administrator picks the lesson at promotion time. Active
entries always carry positions ``1..N`` ordered by registration date.
"""

from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.lessons_service.errors import (
    AlreadyWaitlistedError,
    DuplicateError,
    LessonFullError,
    NotActiveError,
    NotFoundError,
    coerce_id,
    coerce_optional_id,
)
from services.lessons_service.models import (
    Enrollment,
    Instructor,
    Lesson,
    Swimmer,
    WaitlistEntry,
    WaitlistStatus,
)
from services.lessons_service.services.enrollment_ops import (
    count_enrollments,
    get_enrollment,
    get_lesson_with_participants,
    lock_lesson,
)
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_active_waitlist(db: AsyncSession) -> list[WaitlistEntry]:
    result = await db.execute(
        select(WaitlistEntry)
        .where(WaitlistEntry.status == WaitlistStatus.ACTIVE)
        .order_by(WaitlistEntry.position, WaitlistEntry.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_waitlist_status(db: AsyncSession, swimmer_id: Any) -> Optional[WaitlistEntry]:
    """The swimmer's active entry, or None when they are not waiting."""
    swimmer_id = coerce_id(swimmer_id, "swimmer_id")
    result = await db.execute(
        select(WaitlistEntry)
        .where(
            WaitlistEntry.swimmer_id == swimmer_id,
            WaitlistEntry.status == WaitlistStatus.ACTIVE,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def renumber_active_entries(db: AsyncSession) -> int:
    """Re-rank active entries by registration date; returns how many remain."""
    result = await db.execute(
        select(WaitlistEntry)
        .where(WaitlistEntry.status == WaitlistStatus.ACTIVE)
        .order_by(WaitlistEntry.registration_date, WaitlistEntry.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    entries = result.scalars().all()
    for rank, entry in enumerate(entries, start=1):
        if entry.position != rank:
            entry.position = rank
    await db.flush()
    return len(entries)


async def lock_waitlist_queue(db: AsyncSession) -> None:
    """Hold the queue against other writers until the transaction ends.

    PostgreSQL takes a table lock that still admits readers. SQLite already
    allows a single writer at a time.
    """
    if db.get_bind().dialect.name == "postgresql":
        await db.execute(text("LOCK TABLE waitlist IN SHARE ROW EXCLUSIVE MODE"))


async def _lock_entry(db: AsyncSession, entry_id: int) -> WaitlistEntry:
    result = await db.execute(
        select(WaitlistEntry)
        .where(WaitlistEntry.id == entry_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    entry = result.scalar_one_or_none()
    if not entry:
        raise NotFoundError("waitlist_entry", entry_id)
    return entry


# ---------------------------------------------------------------------------
# Join / leave / clear
# ---------------------------------------------------------------------------


async def join_waitlist(
    db: AsyncSession, *, swimmer_id: Any, notes: Optional[str] = None
) -> WaitlistEntry:
    swimmer_id = coerce_id(swimmer_id, "swimmer_id")

    if not await db.get(Swimmer, swimmer_id):
        raise NotFoundError("swimmer", swimmer_id)

    already_waiting = AlreadyWaitlistedError(
        "Swimmer is already on the waitlist", {"swimmer_id": swimmer_id}
    )
    try:
        await lock_waitlist_queue(db)
        if await get_waitlist_status(db, swimmer_id):
            raise already_waiting

        active_count = await db.execute(
            select(func.count())
            .select_from(WaitlistEntry)
            .where(WaitlistEntry.status == WaitlistStatus.ACTIVE)
        )
        entry = WaitlistEntry(
            swimmer_id=swimmer_id,
            status=WaitlistStatus.ACTIVE,
            position=active_count.scalar_one() + 1,
            notes=notes,
        )
        db.add(entry)
        await db.flush()

        # Joins that raced past the count are ranked by registration date here
        await renumber_active_entries(db)
        await db.commit()
    except IntegrityError as exc:
        # uq_waitlist_active_swimmer: a concurrent join for the same swimmer won
        await db.rollback()
        raise already_waiting from exc
    except Exception:
        await db.rollback()
        raise

    await db.refresh(entry)

    logger.info("Swimmer %s joined waitlist at position %d", swimmer_id, entry.position)
    return entry


async def leave_waitlist(db: AsyncSession, entry_id: Any) -> WaitlistEntry:
    entry_id = coerce_id(entry_id, "waitlist_id")
    entry = await _lock_entry(db, entry_id)
    if entry.status != WaitlistStatus.ACTIVE:
        raise NotActiveError("Waitlist entry is not active", {"waitlist_id": entry_id})

    entry.status = WaitlistStatus.INACTIVE
    await db.flush()
    remaining = await renumber_active_entries(db)
    await db.commit()

    logger.info("Removed waitlist entry %s (%d remaining)", entry_id, remaining)
    return entry


async def clear_waitlist(db: AsyncSession) -> int:
    """Deactivate every active entry; returns how many were cleared."""
    result = await db.execute(
        select(WaitlistEntry)
        .where(WaitlistEntry.status == WaitlistStatus.ACTIVE)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    entries = result.scalars().all()
    for entry in entries:
        entry.status = WaitlistStatus.INACTIVE
    await db.flush()
    await renumber_active_entries(db)
    await db.commit()

    logger.info("Cleared %d waitlist entries", len(entries))
    return len(entries)


# ---------------------------------------------------------------------------
# Promotion
# ---------------------------------------------------------------------------


async def promote_waitlist_entry(
    db: AsyncSession,
    *,
    waitlist_id: Any,
    lesson_id: Any,
    preferred_instructor_id: Any = None,
    admin_note: Optional[str] = None,
) -> tuple[Lesson, list[WaitlistEntry]]:
    """Move a waitlisted swimmer into a lesson in one transaction.

    The waitlist entry and the lesson row are locked before the capacity
    check. Any failure rolls the whole transaction back, so an enrollment
    never exists without its entry being deactivated or the reverse.
    Promotion is an admin action: the public registration window does not
    apply, capacity and duplicate checks do.

    Returns ``(lesson, active_waitlist)``.
    """
    waitlist_id = coerce_id(waitlist_id, "waitlist_id")
    lesson_id = coerce_id(lesson_id, "lesson_id")
    preferred_instructor_id = coerce_optional_id(
        preferred_instructor_id, "preferred_instructor_id"
    )

    try:
        entry = await _lock_entry(db, waitlist_id)
        if entry.status != WaitlistStatus.ACTIVE:
            raise NotActiveError(
                "Waitlist entry is not active", {"waitlist_id": waitlist_id}
            )
        swimmer_id = entry.swimmer_id

        lesson = await lock_lesson(db, lesson_id)

        registered = await count_enrollments(db, lesson_id)
        if registered >= lesson.max_slots:
            raise LessonFullError(lesson_id, lesson.max_slots)

        if await get_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id):
            raise DuplicateError(
                "Swimmer is already registered for this lesson",
                {"swimmer_id": swimmer_id, "lesson_id": lesson_id},
            )

        if preferred_instructor_id is not None and not await db.get(
            Instructor, preferred_instructor_id
        ):
            raise NotFoundError("instructor", preferred_instructor_id)

        db.add(
            Enrollment(
                swimmer_id=swimmer_id,
                lesson_id=lesson_id,
                preferred_instructor_id=preferred_instructor_id,
                assigned_instructor_id=None,
                instructor_notes=admin_note or get_settings().WAITLIST_PROMOTION_NOTE,
                missing_dates=[],
            )
        )
        entry.status = WaitlistStatus.INACTIVE
        await db.flush()

        await renumber_active_entries(db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Promoted waitlist entry %s (swimmer %s) into lesson %s",
        waitlist_id,
        swimmer_id,
        lesson_id,
    )
    return (
        await get_lesson_with_participants(db, lesson_id),
        await list_active_waitlist(db),
    )
