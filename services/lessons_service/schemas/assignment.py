"""Instructor assignment schemas."""

from typing import Optional

from pydantic import BaseModel
from services.lessons_service.schemas.lesson import EnrollmentResponse


class AssignInstructorRequest(BaseModel):
    swimmer_id: int
    instructor_id: Optional[int] = None


class AssignInstructorResponse(BaseModel):
    enrollment: EnrollmentResponse
    previous_instructor_id: Optional[int] = None
    credentials_sent: bool = False
