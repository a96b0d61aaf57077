"""Restaurant verification workflow."""

from __future__ import annotations

from datetime import UTC, datetime
import logging

from tastemap.core.logging_safety import safe_log_identifier
from tastemap.domain.directories import RestaurantDirectory, VerificationRequestRecord, VerificationStore
from tastemap.errors import ApiError, forbidden, not_found
from tastemap.schemas.verification import VerificationRequest, VerificationStatus
from tastemap.services.notifications import NotificationDispatcher, NotificationMessage

logger = logging.getLogger(__name__)


class VerificationWorkflow:
    """Owner-requested, admin-reviewed verification of a restaurant.

    A request is created PENDING and reviewed exactly once. Approval flips the
    restaurant's public ``verified`` flag in the same store operation that records
    the decision.
    """

    def __init__(
        self,
        requests: VerificationStore,
        restaurants: RestaurantDirectory,
        notifications: NotificationDispatcher | None = None,
    ) -> None:
        self._requests = requests
        self._restaurants = restaurants
        self._notifications = notifications

    def request(
        self,
        *,
        restaurant_id: int,
        requester_id: int,
        notes: str | None = None,
    ) -> VerificationRequest:
        restaurant = self._restaurants.get_restaurant(restaurant_id)
        if restaurant is None:
            raise not_found("Restaurant not found.")
        if restaurant.owner_id != requester_id:
            raise forbidden("You do not own this restaurant.")
        if restaurant.verified:
            raise ApiError(
                status_code=400,
                code="RESTAURANT_ALREADY_VERIFIED",
                message="Restaurant is already verified.",
            )

        pending = self._requests.list_verification_requests(
            status=VerificationStatus.PENDING,
            restaurant_id=restaurant_id,
        )
        if pending:
            raise ApiError(
                status_code=400,
                code="VERIFICATION_ALREADY_PENDING",
                message="A pending verification request already exists for this restaurant.",
                details={"pending_request_id": pending[0].id},
            )

        record = self._requests.create_verification_request(restaurant_id=restaurant_id, notes=notes)
        logger.info(
            "verification.requested request_id=%s restaurant_id=%s requester_id=%s",
            record.id,
            restaurant_id,
            safe_log_identifier(requester_id, prefix="uid"),
        )
        return self._to_verification_request(record)

    def approve(self, *, request_id: int, admin_id: int) -> VerificationRequest:
        record = self._get_record(request_id)
        try:
            self._requests.apply_verification_approval(
                request=record,
                admin_id=admin_id,
                reviewed_at=datetime.now(UTC),
            )
        except (RuntimeError, LookupError) as exc:
            logger.warning(
                "verification.approve_failed request_id=%s code=STORAGE_UNAVAILABLE reason=%s",
                record.id,
                type(exc).__name__,
            )
            raise ApiError(
                status_code=503,
                code="STORAGE_UNAVAILABLE",
                message="Unable to process your request at the moment, please try later",
            ) from exc
        logger.info(
            "verification.approved request_id=%s restaurant_id=%s admin_id=%s",
            record.id,
            record.restaurant_id,
            safe_log_identifier(admin_id, prefix="uid"),
        )
        self._notify_owner(
            record,
            title="Restaurant verified",
            message="Your verification request was approved. Your restaurant is now shown as verified.",
        )
        return self._to_verification_request(record)

    def reject(self, *, request_id: int, admin_id: int, reason: str | None) -> VerificationRequest:
        record = self._get_record(request_id)
        normalized_reason = (reason or "").strip()
        if record.status is VerificationStatus.PENDING and not normalized_reason:
            raise ApiError(
                status_code=400,
                code="REJECTION_REASON_REQUIRED",
                message="Rejection reason is required when rejecting a request.",
            )

        self._requests.apply_verification_rejection(
            request=record,
            admin_id=admin_id,
            reviewed_at=datetime.now(UTC),
            reason=reason or "",
        )
        logger.info(
            "verification.rejected request_id=%s restaurant_id=%s admin_id=%s",
            record.id,
            record.restaurant_id,
            safe_log_identifier(admin_id, prefix="uid"),
        )
        self._notify_owner(
            record,
            title="Verification request rejected",
            message=f"Your verification request was rejected: {normalized_reason}",
        )
        return self._to_verification_request(record)

    def find_pending(self) -> list[VerificationRequest]:
        records = self._requests.list_verification_requests(status=VerificationStatus.PENDING)
        return [self._to_verification_request(record) for record in records]

    def find_all(self) -> list[VerificationRequest]:
        records = self._requests.list_verification_requests()
        return [self._to_verification_request(record) for record in reversed(records)]

    def find_by_restaurant(self, *, restaurant_id: int) -> list[VerificationRequest]:
        records = self._requests.list_verification_requests(restaurant_id=restaurant_id)
        return [self._to_verification_request(record) for record in reversed(records)]

    def find_by_id(self, *, request_id: int) -> VerificationRequest:
        return self._to_verification_request(self._get_record(request_id))

    def count_pending(self) -> int:
        return len(self._requests.list_verification_requests(status=VerificationStatus.PENDING))

    def _get_record(self, request_id: int) -> VerificationRequestRecord:
        record = self._requests.get_verification_request(request_id)
        if record is None:
            raise not_found("Verification request not found.")
        return record

    def _notify_owner(self, record: VerificationRequestRecord, *, title: str, message: str) -> None:
        if self._notifications is None:
            return
        restaurant = self._restaurants.get_restaurant(record.restaurant_id)
        if restaurant is None:
            return
        self._notifications.enqueue(
            NotificationMessage(user_id=restaurant.owner_id, title=title, message=message)
        )

    @staticmethod
    def _to_verification_request(record: VerificationRequestRecord) -> VerificationRequest:
        return VerificationRequest(
            id=record.id,
            restaurant_id=record.restaurant_id,
            admin_id=record.admin_id,
            status=record.status,
            notes=record.notes,
            rejection_reason=record.rejection_reason,
            created_at=record.created_at,
            reviewed_at=record.reviewed_at,
        )
