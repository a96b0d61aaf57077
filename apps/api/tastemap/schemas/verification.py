"""Verification request API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import Field

from tastemap.schemas.base import ApiModel


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RequestVerificationRequest(ApiModel):
    restaurant_id: int
    notes: str | None = Field(default=None, max_length=1000)


class RejectVerificationRequest(ApiModel):
    # Presence is enforced by the workflow so a missing reason maps to its own error code.
    rejection_reason: str | None = None


class VerificationRequest(ApiModel):
    id: int
    restaurant_id: int
    admin_id: int | None = None
    status: VerificationStatus
    notes: str | None = None
    rejection_reason: str | None = None
    created_at: datetime
    reviewed_at: datetime | None = None
