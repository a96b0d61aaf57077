"""API error response schemas."""

from typing import Any

from pydantic import BaseModel

from tastemap.schemas.verification import VerificationStatus


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class TransitionErrorDetails(BaseModel):
    current_status: VerificationStatus
    attempted_status: VerificationStatus
    allowed_next_statuses: list[VerificationStatus] | None = None


class FsmTransitionError(BaseModel):
    code: str
    message: str
    details: TransitionErrorDetails
