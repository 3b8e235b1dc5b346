"""Lessons Service models package.

Re-exports all models and enums so that:
  - ``from services.lessons_service.models import Lesson`` works
  - Alembic env.py sees every table through a single import
  - SQLAlchemy's mapper registry sees every model class on import

When adding a new model, add both its import and its __all__ entry.
"""

from services.lessons_service.models.coverage import CoverageRequest  # noqa: F401
from services.lessons_service.models.enums import (  # noqa: F401
    CoverageStatus,
    UserRole,
    WaitlistStatus,
    enum_values,
)
from services.lessons_service.models.lesson import Enrollment, Lesson  # noqa: F401
from services.lessons_service.models.people import (  # noqa: F401
    Instructor,
    Swimmer,
    User,
)
from services.lessons_service.models.waitlist import WaitlistEntry  # noqa: F401

__all__ = [
    "CoverageRequest",
    "CoverageStatus",
    "Enrollment",
    "Instructor",
    "Lesson",
    "Swimmer",
    "User",
    "UserRole",
    "WaitlistEntry",
    "WaitlistStatus",
    "enum_values",
]
