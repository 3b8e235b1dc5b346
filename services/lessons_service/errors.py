"""
Domain errors raised by the scheduling core.

Each error kind has a stable ``code`` so callers can tell conditions apart
without parsing messages. Routers never translate these by hand: the app
registers ``scheduling_error_handler`` which renders ``to_http_exception()``.
"""

from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from libs.common.logging import get_logger

logger = get_logger(__name__)


class SchedulingError(Exception):
    """Base exception for all scheduling-core errors."""

    code = "scheduling_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class InvalidIdentifierError(SchedulingError):
    code = "invalid_identifier"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, value: Any):
        super().__init__(f"Invalid {field}: {value!r}", {"field": field})


class InvalidLessonError(SchedulingError):
    code = "invalid_lesson"
    status_code = 422


class NotFoundError(SchedulingError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, identifier: Any = None, message: Optional[str] = None):
        self.entity = entity
        super().__init__(
            message or f"{entity.replace('_', ' ').capitalize()} not found",
            {"entity": entity, "id": identifier},
        )


class DuplicateError(SchedulingError):
    code = "duplicate"
    status_code = status.HTTP_409_CONFLICT


class LessonFullError(SchedulingError):
    code = "lesson_full"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, lesson_id: int, max_slots: int):
        super().__init__(
            "This lesson is full",
            {"lesson_id": lesson_id, "max_slots": max_slots},
        )


class RegistrationClosedError(SchedulingError):
    code = "registration_closed"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message, {"reason": reason})


class SchedulingConflictError(SchedulingError):
    code = "scheduling_conflict"
    status_code = status.HTTP_409_CONFLICT


class AlreadyWaitlistedError(SchedulingError):
    code = "already_waitlisted"
    status_code = status.HTTP_409_CONFLICT


class NotActiveError(SchedulingError):
    code = "not_active"
    status_code = status.HTTP_409_CONFLICT


class NotPendingError(SchedulingError):
    code = "not_pending"
    status_code = status.HTTP_409_CONFLICT


class NotAcceptedError(SchedulingError):
    code = "not_accepted"
    status_code = status.HTTP_409_CONFLICT


class AlreadyProcessedError(SchedulingError):
    code = "already_processed"
    status_code = status.HTTP_409_CONFLICT


class SelfAcceptError(SchedulingError):
    code = "self_accept"
    status_code = status.HTTP_403_FORBIDDEN


class NotOwnerError(SchedulingError):
    code = "not_owner"
    status_code = status.HTTP_403_FORBIDDEN


class NotCoveringInstructorError(SchedulingError):
    code = "not_covering_instructor"
    status_code = status.HTTP_403_FORBIDDEN


def coerce_id(value: Any, field: str) -> int:
    """Turn ``value`` into a positive integer id or raise InvalidIdentifierError."""
    if isinstance(value, bool):
        raise InvalidIdentifierError(field, value)
    if isinstance(value, int):
        identifier = value
    elif isinstance(value, str) and value.strip().isdigit():
        identifier = int(value.strip())
    else:
        raise InvalidIdentifierError(field, value)
    if identifier <= 0:
        raise InvalidIdentifierError(field, value)
    return identifier


def coerce_optional_id(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    return coerce_id(value, field)


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    logger.info(
        "Rejected %s %s: %s",
        request.method,
        request.url.path,
        exc.code,
        extra={"extra_fields": {"code": exc.code, "details": exc.details}},
    )
    http_exc = exc.to_http_exception()
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})
