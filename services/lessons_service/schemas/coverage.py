"""Coverage request schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.lessons_service.models.enums import CoverageStatus
from services.lessons_service.schemas.common import CanonicalDate
from services.lessons_service.schemas.lesson import EnrollmentResponse, LessonSummary


class CoverageCreateRequest(BaseModel):
    lesson_id: int
    swimmer_id: Optional[int] = None
    request_date: CanonicalDate
    reason: Optional[str] = None
    notes: Optional[str] = None


class CoverageRequestResponse(BaseModel):
    id: int
    lesson_id: int
    swimmer_id: Optional[int] = None
    requesting_instructor_id: int
    covering_instructor_id: Optional[int] = None
    status: CoverageStatus
    request_date: CanonicalDate
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CoverageStatsResponse(BaseModel):
    pending_requests: int
    accepted_coverage: int
    available_requests: int

    model_config = ConfigDict(from_attributes=True)


class InstructorCoverageResponse(BaseModel):
    own_requests: list[CoverageRequestResponse] = Field(default_factory=list)
    available_requests: list[CoverageRequestResponse] = Field(default_factory=list)
    accepted_coverage: list[CoverageRequestResponse] = Field(default_factory=list)
    accepted_requested_coverage: list[CoverageRequestResponse] = Field(
        default_factory=list
    )

    model_config = ConfigDict(from_attributes=True)


class CoverageDashboardResponse(BaseModel):
    stats: CoverageStatsResponse
    coverage_requests: InstructorCoverageResponse


class AvailableLessonResponse(BaseModel):
    lesson: LessonSummary
    participants: list[EnrollmentResponse]

    model_config = ConfigDict(from_attributes=True)
