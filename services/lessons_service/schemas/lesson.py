"""Lesson and enrollment response/request schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.lessons_service.schemas.common import (
    CanonicalDate,
    TimeOfDay,
    WeekdayList,
)


class EnrollmentResponse(BaseModel):
    swimmer_id: int
    lesson_id: int
    preferred_instructor_id: Optional[int] = None
    assigned_instructor_id: Optional[int] = None
    instructor_notes: Optional[str] = None
    missing_dates: list[CanonicalDate] = Field(default_factory=list)
    payment_status: bool = False
    registration_date: datetime

    model_config = ConfigDict(from_attributes=True)


class LessonSummary(BaseModel):
    id: int
    start_date: CanonicalDate
    end_date: CanonicalDate
    start_time: TimeOfDay
    end_time: TimeOfDay
    meeting_days: WeekdayList
    max_slots: int
    exception_dates: list[CanonicalDate] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class LessonResponse(LessonSummary):
    """A lesson with its participants in registration order."""

    participants: list[EnrollmentResponse] = Field(
        default_factory=list, validation_alias="enrollments"
    )


class LessonSlotResponse(BaseModel):
    lesson: LessonSummary
    registered: int
    remaining: int

    model_config = ConfigDict(from_attributes=True)


class LessonCreateRequest(BaseModel):
    start_date: CanonicalDate
    end_date: CanonicalDate
    start_time: TimeOfDay
    end_time: TimeOfDay
    meeting_days: WeekdayList
    max_slots: int = Field(ge=1)
    exception_dates: list[CanonicalDate] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_ranges(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        if not self.meeting_days:
            raise ValueError("meeting_days must name at least one weekday")
        return self


class LessonUpdateRequest(BaseModel):
    """Partial update; cross-field checks run against the stored lesson."""

    start_date: Optional[CanonicalDate] = None
    end_date: Optional[CanonicalDate] = None
    start_time: Optional[TimeOfDay] = None
    end_time: Optional[TimeOfDay] = None
    meeting_days: Optional[WeekdayList] = None
    max_slots: Optional[int] = Field(default=None, ge=1)


class DateListRequest(BaseModel):
    dates: list[CanonicalDate] = Field(min_length=1)
