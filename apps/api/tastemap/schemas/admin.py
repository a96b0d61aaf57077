"""Admin dashboard schemas."""

from tastemap.schemas.base import ApiModel


class DashboardSummary(ApiModel):
    total_users: int
    total_restaurants: int
    pending_verifications: int
