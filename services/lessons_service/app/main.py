"""FastAPI application for the Lessons Service."""

from fastapi import FastAPI
from libs.common.middleware import add_observability_middleware
from services.lessons_service.errors import SchedulingError, scheduling_error_handler
from services.lessons_service.routers import (
    admin_coverage_router,
    admin_waitlist_router,
    assignments_router,
    coverage_router,
    enrollments_router,
    lessons_router,
    waitlist_router,
)


def create_app() -> FastAPI:
    """Create and configure the Lessons Service FastAPI app."""
    app = FastAPI(
        title="Swim Lessons Service",
        version="0.1.0",
        description="Lesson scheduling, enrollment, waitlist and instructor coverage.",
    )

    add_observability_middleware(app, service_name="lessons")
    app.add_exception_handler(SchedulingError, scheduling_error_handler)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "lessons"}

    # Customer-facing routes
    app.include_router(lessons_router)
    app.include_router(enrollments_router)
    app.include_router(waitlist_router)

    # Instructor routes
    app.include_router(coverage_router)

    # Admin routes
    app.include_router(assignments_router)
    app.include_router(admin_waitlist_router)
    app.include_router(admin_coverage_router)

    return app


app = create_app()
