"""Lesson catalogue and lesson management endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user, require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.lessons_service.schemas import (
    DateListRequest,
    LessonCreateRequest,
    LessonResponse,
    LessonSlotResponse,
    LessonUpdateRequest,
)
from services.lessons_service.services.enrollment_ops import (
    add_exception_dates,
    create_lesson,
    list_lesson_slots,
    list_lessons_with_participants,
    remove_exception_dates,
    update_lesson,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("/slots", response_model=List[LessonSlotResponse])
async def get_lesson_slots(
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Lessons that have not ended yet, with remaining capacity."""
    return await list_lesson_slots(db)


@router.get("", response_model=List[LessonResponse])
async def list_lessons(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_lessons_with_participants(db)


@router.post("", response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
async def create_lesson_endpoint(
    lesson_in: LessonCreateRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_lesson(db, **lesson_in.model_dump())


@router.patch("/{lesson_id}", response_model=LessonResponse)
async def update_lesson_endpoint(
    lesson_id: int,
    lesson_in: LessonUpdateRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await update_lesson(db, lesson_id, lesson_in.model_dump(exclude_unset=True))


@router.post("/{lesson_id}/exceptions", response_model=LessonResponse)
async def add_lesson_exceptions(
    lesson_id: int,
    body: DateListRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Mark dates on which the lesson does not meet."""
    return await add_exception_dates(db, lesson_id, body.dates)


@router.delete("/{lesson_id}/exceptions", response_model=LessonResponse)
async def remove_lesson_exceptions(
    lesson_id: int,
    body: DateListRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await remove_exception_dates(db, lesson_id, body.dates)
