"""Coverage request state machine.

``status``, ``requesting_instructor_id`` and ``covering_instructor_id`` on a
CoverageRequest change only through ``apply_transition``. The table lists
every legal move; anything else is rejected with the guard error of the
action attempted.

    pending  --accept-->      accepted   (covering := actor)
    accepted --re_request-->  pending    (requesting := actor, covering := None)
    pending  --decline-->     declined   (terminal)
"""

import enum
from typing import Optional

from services.lessons_service.errors import (
    AlreadyProcessedError,
    NotAcceptedError,
    NotCoveringInstructorError,
    NotPendingError,
    SelfAcceptError,
)
from services.lessons_service.models import CoverageRequest, CoverageStatus


class CoverageAction(str, enum.Enum):
    ACCEPT = "accept"
    RE_REQUEST = "re_request"
    DECLINE = "decline"


TRANSITIONS: dict[tuple[CoverageStatus, CoverageAction], CoverageStatus] = {
    (CoverageStatus.PENDING, CoverageAction.ACCEPT): CoverageStatus.ACCEPTED,
    (CoverageStatus.ACCEPTED, CoverageAction.RE_REQUEST): CoverageStatus.PENDING,
    (CoverageStatus.PENDING, CoverageAction.DECLINE): CoverageStatus.DECLINED,
}


def can_transition(status: CoverageStatus, action: CoverageAction) -> bool:
    return (CoverageStatus(status), action) in TRANSITIONS


def apply_transition(
    request: CoverageRequest,
    action: CoverageAction,
    actor_id: Optional[int] = None,
) -> CoverageRequest:
    """Validate guards for ``action`` and mutate ``request`` in place."""
    details = {"request_id": request.id, "status": CoverageStatus(request.status).value}

    if action == CoverageAction.ACCEPT:
        if not can_transition(request.status, action):
            raise NotPendingError("Coverage request is no longer pending", details)
        if request.requesting_instructor_id == actor_id:
            raise SelfAcceptError("You cannot accept your own coverage request", details)
        request.covering_instructor_id = actor_id

    elif action == CoverageAction.RE_REQUEST:
        if request.covering_instructor_id != actor_id:
            raise NotCoveringInstructorError("You are not covering this request", details)
        if not can_transition(request.status, action):
            raise NotAcceptedError("Coverage request is not accepted", details)
        # The relinquishing instructor becomes the owner of the re-opened request
        request.requesting_instructor_id = actor_id
        request.covering_instructor_id = None

    elif action == CoverageAction.DECLINE:
        if not can_transition(request.status, action):
            raise AlreadyProcessedError("Coverage request was already processed", details)

    request.status = TRANSITIONS[(CoverageStatus(request.status), action)]
    return request
