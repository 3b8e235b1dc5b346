"""Lessons service routers."""

from services.lessons_service.routers.assignments import router as assignments_router
from services.lessons_service.routers.coverage import (
    admin_router as admin_coverage_router,
)
from services.lessons_service.routers.coverage import router as coverage_router
from services.lessons_service.routers.enrollments import router as enrollments_router
from services.lessons_service.routers.lessons import router as lessons_router
from services.lessons_service.routers.waitlist import (
    admin_router as admin_waitlist_router,
)
from services.lessons_service.routers.waitlist import router as waitlist_router

__all__ = [
    "admin_coverage_router",
    "admin_waitlist_router",
    "assignments_router",
    "coverage_router",
    "enrollments_router",
    "lessons_router",
    "waitlist_router",
]
