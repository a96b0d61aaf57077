"""Verification request lifecycle transition rules."""

from tastemap.errors import ApiError
from tastemap.schemas.verification import VerificationStatus

_TERMINAL_STATES: set[VerificationStatus] = {
    VerificationStatus.APPROVED,
    VerificationStatus.REJECTED,
}

_ALLOWED_TRANSITIONS: dict[VerificationStatus, set[VerificationStatus]] = {
    VerificationStatus.PENDING: {VerificationStatus.APPROVED, VerificationStatus.REJECTED},
    VerificationStatus.APPROVED: set(),
    VerificationStatus.REJECTED: set(),
}


def is_terminal(status: VerificationStatus) -> bool:
    return status in _TERMINAL_STATES


def allowed_next_statuses(status: VerificationStatus) -> list[VerificationStatus]:
    """Return deterministically ordered allowed successors for a status."""
    return sorted(_ALLOWED_TRANSITIONS.get(status, set()), key=lambda s: s.value)


def ensure_transition(old_status: VerificationStatus, new_status: VerificationStatus) -> None:
    """Validate a review decision against the lifecycle rules."""
    if old_status in _TERMINAL_STATES:
        raise ApiError(
            status_code=400,
            code="FSM_TERMINAL_IMMUTABLE",
            message=f"Only pending requests can be {new_status.value.lower()}.",
            details={
                "current_status": old_status,
                "attempted_status": new_status,
                "allowed_next_statuses": [],
            },
        )

    if new_status not in _ALLOWED_TRANSITIONS.get(old_status, set()):
        raise ApiError(
            status_code=400,
            code="FSM_TRANSITION_INVALID",
            message="Invalid status transition",
            details={
                "current_status": old_status,
                "attempted_status": new_status,
                "allowed_next_statuses": allowed_next_statuses(old_status),
            },
        )
