"""Coverage request endpoints for instructors, plus admin views."""

from typing import List

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin, require_instructor
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.lessons_service.schemas import (
    AvailableLessonResponse,
    CoverageCreateRequest,
    CoverageDashboardResponse,
    CoverageRequestResponse,
    CoverageStatsResponse,
    InstructorCoverageResponse,
)
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
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/instructor/coverage", tags=["coverage"])
admin_router = APIRouter(prefix="/admin/coverage", tags=["admin-coverage"])


@router.get("", response_model=CoverageDashboardResponse)
async def coverage_dashboard(
    instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    """Stats plus own, available and accepted requests for the caller."""
    stats = await get_coverage_stats(db, instructor.email)
    coverage = await get_instructor_coverage(db, instructor.email)
    return CoverageDashboardResponse(
        stats=CoverageStatsResponse.model_validate(stats),
        coverage_requests=InstructorCoverageResponse.model_validate(coverage),
    )


@router.get("/stats", response_model=CoverageStatsResponse)
async def coverage_stats(
    instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    return await get_coverage_stats(db, instructor.email)


@router.get("/available-lessons", response_model=List[AvailableLessonResponse])
async def available_lessons(
    instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    """Lessons the caller teaches that have not ended, with their swimmers."""
    return await list_available_lessons(db, instructor.email)


@router.post("", response_model=CoverageRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    body: CoverageCreateRequest,
    instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_coverage_request(
        db,
        instructor_email=instructor.email,
        lesson_id=body.lesson_id,
        swimmer_id=body.swimmer_id,
        request_date=body.request_date,
        reason=body.reason,
        notes=body.notes,
    )


@router.post("/{request_id}/accept", response_model=CoverageRequestResponse)
async def accept_request(
    request_id: int,
    instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    return await accept_coverage_request(
        db, request_id=request_id, instructor_email=instructor.email
    )


@router.post("/{request_id}/re-request", response_model=CoverageRequestResponse)
async def re_request(
    request_id: int,
    instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    """Give back coverage you accepted; you become the request's owner."""
    return await re_request_coverage(
        db, request_id=request_id, instructor_email=instructor.email
    )


@router.post("/{request_id}/decline", response_model=CoverageRequestResponse)
async def decline_request(
    request_id: int,
    _instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    return await decline_coverage_request(db, request_id=request_id)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: int,
    instructor: AuthUser = Depends(require_instructor),
    db: AsyncSession = Depends(get_async_db),
):
    await delete_coverage_request(
        db, request_id=request_id, instructor_email=instructor.email
    )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.get("/lesson/{lesson_id}", response_model=List[CoverageRequestResponse])
async def coverage_for_lesson(
    lesson_id: int,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_coverage_for_lesson(db, lesson_id)


@admin_router.get("/swimmer/{swimmer_id}", response_model=List[CoverageRequestResponse])
async def coverage_for_swimmer(
    swimmer_id: int,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await list_coverage_for_swimmer(db, swimmer_id)
