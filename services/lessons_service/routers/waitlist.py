"""Waitlist endpoints: public join/status and admin management."""

from typing import List

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user, require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.lessons_service.schemas import (
    LessonResponse,
    WaitlistClearResponse,
    WaitlistEntryResponse,
    WaitlistJoinRequest,
    WaitlistPromoteRequest,
    WaitlistPromoteResponse,
    WaitlistStatusResponse,
)
from services.lessons_service.services.waitlist_ops import (
    clear_waitlist,
    get_waitlist_status,
    join_waitlist,
    leave_waitlist,
    list_active_waitlist,
    promote_waitlist_entry,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/waitlist", tags=["waitlist"])
admin_router = APIRouter(prefix="/admin/waitlist", tags=["admin-waitlist"])


@router.post("/join", response_model=WaitlistEntryResponse, status_code=status.HTTP_201_CREATED)
async def join(
    body: WaitlistJoinRequest,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await join_waitlist(db, swimmer_id=body.swimmer_id, notes=body.notes)


@router.get("/status/{swimmer_id}", response_model=WaitlistStatusResponse)
async def waitlist_status(
    swimmer_id: int,
    _user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    entry = await get_waitlist_status(db, swimmer_id)
    return WaitlistStatusResponse(
        on_waitlist=entry is not None,
        entry=WaitlistEntryResponse.model_validate(entry) if entry else None,
    )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.get("", response_model=List[WaitlistEntryResponse])
async def list_waitlist(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Active entries in position order."""
    return await list_active_waitlist(db)


@admin_router.delete("/{waitlist_id}", response_model=WaitlistEntryResponse)
async def remove_entry(
    waitlist_id: int,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await leave_waitlist(db, waitlist_id)


@admin_router.delete("", response_model=WaitlistClearResponse)
async def clear(
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return WaitlistClearResponse(cleared=await clear_waitlist(db))


@admin_router.post("/promote", response_model=WaitlistPromoteResponse)
async def promote(
    body: WaitlistPromoteRequest,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Enroll a waitlisted swimmer into a lesson chosen by the admin."""
    lesson, waitlist = await promote_waitlist_entry(
        db,
        waitlist_id=body.waitlist_id,
        lesson_id=body.lesson_id,
        preferred_instructor_id=body.preferred_instructor_id,
        admin_note=body.admin_note,
    )
    return WaitlistPromoteResponse(
        lesson=LessonResponse.model_validate(lesson),
        waitlist=[WaitlistEntryResponse.model_validate(entry) for entry in waitlist],
    )
