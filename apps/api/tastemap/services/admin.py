"""Admin dashboard aggregation."""

from tastemap.repositories.memory import InMemoryStore
from tastemap.schemas.admin import DashboardSummary
from tastemap.services.verification import VerificationWorkflow


class AdminDashboardService:
    def __init__(self, store: InMemoryStore, verification: VerificationWorkflow) -> None:
        self._store = store
        self._verification = verification

    def summary(self) -> DashboardSummary:
        return DashboardSummary(
            total_users=self._store.count_users(),
            total_restaurants=self._store.count_restaurants(),
            pending_verifications=self._verification.count_pending(),
        )
