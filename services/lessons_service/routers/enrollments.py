"""Registration, cancellation and per-enrollment details."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user, require_admin, require_instructor
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.lessons_service.schemas import (
    DateListRequest,
    EnrollmentResponse,
    LessonResponse,
    NotesUpdateRequest,
    PaymentUpdateRequest,
    RegistrationRequest,
    RegistrationResponse,
)
from services.lessons_service.services.enrollment_ops import (
    add_missing_dates,
    cancel_enrollment,
    register_swimmer,
    remove_missing_dates,
    update_instructor_notes,
    update_payment_status,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post("", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: RegistrationRequest,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Register a swimmer for a lesson.
    Closes the day before the lesson starts; full lessons point to the waitlist.
    """
    enrollment, lesson = await register_swimmer(
        db,
        swimmer_id=registration.swimmer_id,
        lesson_id=registration.lesson_id,
        preferred_instructor_id=registration.preferred_instructor_id,
        instructor_notes=registration.instructor_notes,
        missing_dates=registration.missing_dates,
    )
    return RegistrationResponse(
        enrollment=EnrollmentResponse.model_validate(enrollment),
        lesson=LessonResponse.model_validate(lesson),
    )


@router.delete("/{lesson_id}/{swimmer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel(
    lesson_id: int,
    swimmer_id: int,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    await cancel_enrollment(db, swimmer_id=swimmer_id, lesson_id=lesson_id)


@router.post("/{lesson_id}/{swimmer_id}/missing-dates", response_model=EnrollmentResponse)
async def add_missing(
    lesson_id: int,
    swimmer_id: int,
    body: DateListRequest,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await add_missing_dates(
        db, swimmer_id=swimmer_id, lesson_id=lesson_id, dates=body.dates
    )


@router.delete("/{lesson_id}/{swimmer_id}/missing-dates", response_model=EnrollmentResponse)
async def remove_missing(
    lesson_id: int,
    swimmer_id: int,
    body: DateListRequest,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await remove_missing_dates(
        db, swimmer_id=swimmer_id, lesson_id=lesson_id, dates=body.dates
    )


@router.patch("/{lesson_id}/{swimmer_id}/notes", response_model=EnrollmentResponse)
async def update_notes(
    lesson_id: int,
    swimmer_id: int,
    body: NotesUpdateRequest,
    _instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    return await update_instructor_notes(
        db, swimmer_id=swimmer_id, lesson_id=lesson_id, notes=body.instructor_notes
    )


@router.patch("/{lesson_id}/{swimmer_id}/payment", response_model=EnrollmentResponse)
async def update_payment(
    lesson_id: int,
    swimmer_id: int,
    body: PaymentUpdateRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await update_payment_status(
        db, swimmer_id=swimmer_id, lesson_id=lesson_id, paid=body.paid
    )
