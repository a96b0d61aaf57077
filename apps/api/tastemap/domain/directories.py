"""Narrow persistence contracts consumed by the auth and verification services.

Services depend on these interfaces rather than on each other, so the
composition root can wire a single store into every service without cycles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from tastemap.schemas.auth import UserRole
from tastemap.schemas.verification import VerificationStatus


@dataclass(slots=True)
class UserRecord:
    id: int
    first_name: str
    last_name: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime
    password_hash: str | None = None
    federated_id: str | None = None
    is_blocked: bool = False


@dataclass(slots=True)
class RestaurantRecord:
    id: int
    name: str
    owner_id: int
    created_at: datetime
    verified: bool = False


@dataclass(slots=True)
class VerificationRequestRecord:
    id: int
    restaurant_id: int
    status: VerificationStatus
    created_at: datetime
    notes: str | None = None
    admin_id: int | None = None
    rejection_reason: str | None = None
    reviewed_at: datetime | None = None


class UserDirectory(ABC):
    @abstractmethod
    def get_user(self, user_id: int) -> UserRecord | None:
        """Return the user with ``user_id``, if any."""

    @abstractmethod
    def find_user_by_email(self, email: str) -> UserRecord | None:
        """Case-insensitive email lookup."""

    @abstractmethod
    def find_user_by_federated_id(self, federated_id: str) -> UserRecord | None:
        """Lookup by the external provider's subject id."""

    @abstractmethod
    def create_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        role: UserRole,
        password_hash: str | None = None,
        federated_id: str | None = None,
    ) -> UserRecord:
        """Persist a new user; raises ``DuplicateUserError`` on a taken email or federated id."""

    @abstractmethod
    def save_user(self, user: UserRecord) -> UserRecord:
        """Persist changes made to an existing user record."""


class RestaurantDirectory(ABC):
    @abstractmethod
    def get_restaurant(self, restaurant_id: int) -> RestaurantRecord | None:
        """Return the restaurant with ``restaurant_id``, if any."""

    @abstractmethod
    def set_restaurant_verified(self, restaurant_id: int, verified: bool) -> RestaurantRecord:
        """Flip the public verified flag."""


class VerificationStore(ABC):
    @abstractmethod
    def create_verification_request(
        self,
        *,
        restaurant_id: int,
        notes: str | None = None,
    ) -> VerificationRequestRecord:
        """Persist a new PENDING request."""

    @abstractmethod
    def get_verification_request(self, request_id: int) -> VerificationRequestRecord | None:
        """Return a request by id."""

    @abstractmethod
    def list_verification_requests(
        self,
        *,
        status: VerificationStatus | None = None,
        restaurant_id: int | None = None,
    ) -> list[VerificationRequestRecord]:
        """Return matching requests ordered by creation (oldest first)."""

    @abstractmethod
    def apply_verification_approval(
        self,
        *,
        request: VerificationRequestRecord,
        admin_id: int,
        reviewed_at: datetime,
    ) -> None:
        """Mark ``request`` APPROVED and its restaurant verified as one unit of work."""

    @abstractmethod
    def apply_verification_rejection(
        self,
        *,
        request: VerificationRequestRecord,
        admin_id: int,
        reviewed_at: datetime,
        reason: str,
    ) -> None:
        """Mark ``request`` REJECTED with ``reason``."""


class DuplicateUserError(Exception):
    """Raised when a new user would collide with an existing email or federated id."""


__all__ = [
    "DuplicateUserError",
    "RestaurantDirectory",
    "RestaurantRecord",
    "UserDirectory",
    "UserRecord",
    "VerificationRequestRecord",
    "VerificationStore",
]
