"""Registration request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field
from services.lessons_service.schemas.common import CanonicalDate
from services.lessons_service.schemas.lesson import EnrollmentResponse, LessonResponse


class RegistrationRequest(BaseModel):
    swimmer_id: int
    lesson_id: int
    preferred_instructor_id: Optional[int] = None
    instructor_notes: Optional[str] = None
    missing_dates: list[CanonicalDate] = Field(default_factory=list)


class RegistrationResponse(BaseModel):
    enrollment: EnrollmentResponse
    lesson: LessonResponse


class NotesUpdateRequest(BaseModel):
    instructor_notes: Optional[str] = None


class PaymentUpdateRequest(BaseModel):
    paid: bool
