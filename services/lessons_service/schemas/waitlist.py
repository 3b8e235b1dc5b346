"""Waitlist request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from services.lessons_service.models.enums import WaitlistStatus
from services.lessons_service.schemas.lesson import LessonResponse


class WaitlistJoinRequest(BaseModel):
    swimmer_id: int
    notes: Optional[str] = None


class WaitlistEntryResponse(BaseModel):
    id: int
    swimmer_id: int
    status: WaitlistStatus
    position: int
    registration_date: datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class WaitlistStatusResponse(BaseModel):
    on_waitlist: bool
    entry: Optional[WaitlistEntryResponse] = None


class WaitlistClearResponse(BaseModel):
    cleared: int


class WaitlistPromoteRequest(BaseModel):
    waitlist_id: int
    lesson_id: int
    preferred_instructor_id: Optional[int] = None
    admin_note: Optional[str] = None


class WaitlistPromoteResponse(BaseModel):
    lesson: LessonResponse
    waitlist: list[WaitlistEntryResponse]
