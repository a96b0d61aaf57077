"""In-memory repositories used by the API scaffold and tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import count
from typing import Iterator

from tastemap.domain.directories import (
    DuplicateUserError,
    RestaurantDirectory,
    RestaurantRecord,
    UserDirectory,
    UserRecord,
    VerificationRequestRecord,
    VerificationStore,
)
from tastemap.domain.verification_fsm import ensure_transition
from tastemap.schemas.auth import UserRole
from tastemap.schemas.notification import NotificationType
from tastemap.schemas.verification import VerificationStatus


@dataclass(slots=True)
class NotificationRecord:
    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    sent_at: datetime
    read: bool = False


def _id_sequence() -> Iterator[int]:
    return count(1)


@dataclass
class InMemoryStore(UserDirectory, RestaurantDirectory, VerificationStore):
    """Simple, deterministic persistence layer for scaffolding and tests."""

    users: dict[int, UserRecord] = field(default_factory=dict)
    restaurants: dict[int, RestaurantRecord] = field(default_factory=dict)
    verification_requests: dict[int, VerificationRequestRecord] = field(default_factory=dict)
    notifications: dict[int, NotificationRecord] = field(default_factory=dict)
    user_write_count: int = 0
    restaurant_write_count: int = 0
    verification_write_count: int = 0
    notification_write_count: int = 0
    restaurant_write_failure_message: str | None = None
    user_write_failure_message: str | None = None
    _user_ids: Iterator[int] = field(default_factory=_id_sequence)
    _restaurant_ids: Iterator[int] = field(default_factory=_id_sequence)
    _verification_ids: Iterator[int] = field(default_factory=_id_sequence)
    _notification_ids: Iterator[int] = field(default_factory=_id_sequence)

    # Users

    def get_user(self, user_id: int) -> UserRecord | None:
        return self.users.get(user_id)

    def find_user_by_email(self, email: str) -> UserRecord | None:
        normalized = email.strip().lower()
        for user in self.users.values():
            if user.email == normalized:
                return user
        return None

    def find_user_by_federated_id(self, federated_id: str) -> UserRecord | None:
        for user in self.users.values():
            if user.federated_id is not None and user.federated_id == federated_id:
                return user
        return None

    def create_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        role: UserRole,
        password_hash: str | None = None,
        federated_id: str | None = None,
        user_id: int | None = None,
    ) -> UserRecord:
        self._maybe_raise_user_write_failure()
        normalized_email = email.strip().lower()
        if self.find_user_by_email(normalized_email) is not None:
            raise DuplicateUserError("Email is already registered")
        if federated_id is not None and self.find_user_by_federated_id(federated_id) is not None:
            raise DuplicateUserError("Federated identity is already linked")

        now = datetime.now(UTC)
        user = UserRecord(
            id=user_id if user_id is not None else self._next_free_id(self._user_ids, self.users),
            first_name=first_name,
            last_name=last_name,
            email=normalized_email,
            role=role,
            created_at=now,
            updated_at=now,
            password_hash=password_hash,
            federated_id=federated_id,
        )
        self.users[user.id] = user
        self.user_write_count += 1
        return user

    def save_user(self, user: UserRecord) -> UserRecord:
        self._maybe_raise_user_write_failure()
        if user.federated_id is not None:
            linked = self.find_user_by_federated_id(user.federated_id)
            if linked is not None and linked.id != user.id:
                raise DuplicateUserError("Federated identity is already linked")
        user.updated_at = datetime.now(UTC)
        self.users[user.id] = user
        self.user_write_count += 1
        return user

    def count_users(self) -> int:
        return len(self.users)

    # Restaurants

    def create_restaurant(self, *, owner_id: int, name: str, restaurant_id: int | None = None) -> RestaurantRecord:
        restaurant = RestaurantRecord(
            id=restaurant_id if restaurant_id is not None else self._next_free_id(self._restaurant_ids, self.restaurants),
            name=name,
            owner_id=owner_id,
            created_at=datetime.now(UTC),
        )
        self.restaurants[restaurant.id] = restaurant
        self.restaurant_write_count += 1
        return restaurant

    def get_restaurant(self, restaurant_id: int) -> RestaurantRecord | None:
        return self.restaurants.get(restaurant_id)

    def list_verified_restaurants(self) -> list[RestaurantRecord]:
        restaurants = [record for record in self.restaurants.values() if record.verified]
        restaurants.sort(key=lambda record: record.created_at)
        return restaurants

    def set_restaurant_verified(self, restaurant_id: int, verified: bool) -> RestaurantRecord:
        if self.restaurant_write_failure_message is not None:
            message = self.restaurant_write_failure_message
            self.restaurant_write_failure_message = None
            raise RuntimeError(message)

        restaurant = self.restaurants.get(restaurant_id)
        if restaurant is None:
            raise LookupError(f"Restaurant {restaurant_id} does not exist")
        restaurant.verified = verified
        self.restaurant_write_count += 1
        return restaurant

    def count_restaurants(self) -> int:
        return len(self.restaurants)

    # Verification requests

    def create_verification_request(
        self,
        *,
        restaurant_id: int,
        notes: str | None = None,
    ) -> VerificationRequestRecord:
        request = VerificationRequestRecord(
            id=next(self._verification_ids),
            restaurant_id=restaurant_id,
            status=VerificationStatus.PENDING,
            created_at=datetime.now(UTC),
            notes=notes,
        )
        self.verification_requests[request.id] = request
        self.verification_write_count += 1
        return request

    def get_verification_request(self, request_id: int) -> VerificationRequestRecord | None:
        return self.verification_requests.get(request_id)

    def list_verification_requests(
        self,
        *,
        status: VerificationStatus | None = None,
        restaurant_id: int | None = None,
    ) -> list[VerificationRequestRecord]:
        requests = [
            record
            for record in self.verification_requests.values()
            if (status is None or record.status is status)
            and (restaurant_id is None or record.restaurant_id == restaurant_id)
        ]
        requests.sort(key=lambda record: (record.created_at, record.id))
        return requests

    def apply_verification_approval(
        self,
        *,
        request: VerificationRequestRecord,
        admin_id: int,
        reviewed_at: datetime,
    ) -> None:
        """Approve the request and verify its restaurant; rollback the request on failure."""
        ensure_transition(request.status, VerificationStatus.APPROVED)
        previous_status = request.status
        previous_admin_id = request.admin_id
        previous_reviewed_at = request.reviewed_at
        previous_write_count = self.verification_write_count

        request.status = VerificationStatus.APPROVED
        request.admin_id = admin_id
        request.reviewed_at = reviewed_at
        self.verification_write_count += 1
        try:
            self.set_restaurant_verified(request.restaurant_id, True)
        except Exception:
            request.status = previous_status
            request.admin_id = previous_admin_id
            request.reviewed_at = previous_reviewed_at
            self.verification_write_count = previous_write_count
            raise

    def apply_verification_rejection(
        self,
        *,
        request: VerificationRequestRecord,
        admin_id: int,
        reviewed_at: datetime,
        reason: str,
    ) -> None:
        ensure_transition(request.status, VerificationStatus.REJECTED)
        request.status = VerificationStatus.REJECTED
        request.admin_id = admin_id
        request.reviewed_at = reviewed_at
        request.rejection_reason = reason
        self.verification_write_count += 1

    # Notifications

    def create_notification(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
    ) -> NotificationRecord:
        notification = NotificationRecord(
            id=next(self._notification_ids),
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            sent_at=datetime.now(UTC),
        )
        self.notifications[notification.id] = notification
        self.notification_write_count += 1
        return notification

    def list_notifications_for_user(self, user_id: int) -> list[NotificationRecord]:
        notifications = [record for record in self.notifications.values() if record.user_id == user_id]
        notifications.sort(key=lambda record: (record.sent_at, record.id), reverse=True)
        return notifications

    def get_notification_for_user(self, *, user_id: int, notification_id: int) -> NotificationRecord | None:
        notification = self.notifications.get(notification_id)
        if notification is None or notification.user_id != user_id:
            return None
        return notification

    def mark_notification_read(self, notification: NotificationRecord) -> None:
        notification.read = True
        self.notification_write_count += 1

    # Helpers

    def _maybe_raise_user_write_failure(self) -> None:
        if self.user_write_failure_message is None:
            return
        message = self.user_write_failure_message
        self.user_write_failure_message = None
        raise RuntimeError(message)

    @staticmethod
    def _next_free_id(sequence: Iterator[int], existing: dict[int, object]) -> int:
        candidate = next(sequence)
        while candidate in existing:
            candidate = next(sequence)
        return candidate
