"""Lessons Service schemas package.

Re-exports all schemas so routers import from a single place.
When adding a new schema, add its import and __all__ entry.
"""

from services.lessons_service.schemas.assignment import (  # noqa: F401
    AssignInstructorRequest,
    AssignInstructorResponse,
)
from services.lessons_service.schemas.common import (  # noqa: F401
    CanonicalDate,
    TimeOfDay,
    WeekdayList,
)
from services.lessons_service.schemas.coverage import (  # noqa: F401
    AvailableLessonResponse,
    CoverageCreateRequest,
    CoverageDashboardResponse,
    CoverageRequestResponse,
    CoverageStatsResponse,
    InstructorCoverageResponse,
)
from services.lessons_service.schemas.enrollment import (  # noqa: F401
    NotesUpdateRequest,
    PaymentUpdateRequest,
    RegistrationRequest,
    RegistrationResponse,
)
from services.lessons_service.schemas.lesson import (  # noqa: F401
    DateListRequest,
    EnrollmentResponse,
    LessonCreateRequest,
    LessonResponse,
    LessonSlotResponse,
    LessonSummary,
    LessonUpdateRequest,
)
from services.lessons_service.schemas.waitlist import (  # noqa: F401
    WaitlistClearResponse,
    WaitlistEntryResponse,
    WaitlistJoinRequest,
    WaitlistPromoteRequest,
    WaitlistPromoteResponse,
    WaitlistStatusResponse,
)

__all__ = [
    "AssignInstructorRequest",
    "AssignInstructorResponse",
    "AvailableLessonResponse",
    "CanonicalDate",
    "CoverageCreateRequest",
    "CoverageDashboardResponse",
    "CoverageRequestResponse",
    "CoverageStatsResponse",
    "DateListRequest",
    "EnrollmentResponse",
    "InstructorCoverageResponse",
    "LessonCreateRequest",
    "LessonResponse",
    "LessonSlotResponse",
    "LessonSummary",
    "LessonUpdateRequest",
    "NotesUpdateRequest",
    "PaymentUpdateRequest",
    "RegistrationRequest",
    "RegistrationResponse",
    "TimeOfDay",
    "WaitlistClearResponse",
    "WaitlistEntryResponse",
    "WaitlistJoinRequest",
    "WaitlistPromoteRequest",
    "WaitlistPromoteResponse",
    "WaitlistStatusResponse",
    "WeekdayList",
]
