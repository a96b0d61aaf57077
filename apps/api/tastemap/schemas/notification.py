"""Notification API schemas."""

from datetime import datetime
from enum import Enum

from tastemap.schemas.base import ApiModel


class NotificationType(str, Enum):
    VERIFICATION = "VERIFICATION"


class Notification(ApiModel):
    id: int
    title: str
    message: str
    type: NotificationType
    read: bool
    sent_at: datetime
