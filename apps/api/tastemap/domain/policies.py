"""Per-route access policy descriptors and the table that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from tastemap.schemas.auth import UserRole


@dataclass(frozen=True, slots=True)
class OwnershipSource:
    """Where an owner-scoped route carries the target restaurant id."""

    location: Literal["path", "body"]
    field_name: str


@dataclass(frozen=True, slots=True)
class RoutePolicy:
    auth_required: bool = True
    required_roles: frozenset[UserRole] = field(default_factory=frozenset)
    ownership: OwnershipSource | None = None


PUBLIC = RoutePolicy(auth_required=False)
AUTHENTICATED = RoutePolicy()


def roles(*allowed: UserRole, ownership: OwnershipSource | None = None) -> RoutePolicy:
    return RoutePolicy(required_roles=frozenset(allowed), ownership=ownership)


class RoutePolicyTable:
    """Policies keyed by ``(METHOD, route template)``, registered once at startup."""

    def __init__(self) -> None:
        self._policies: dict[tuple[str, str], RoutePolicy] = {}

    def register(self, method: str, path: str, policy: RoutePolicy) -> None:
        key = (method.upper(), path)
        if key in self._policies:
            raise ValueError(f"Route policy already registered for {key[0]} {key[1]}")
        self._policies[key] = policy

    def resolve(self, method: str, path: str) -> RoutePolicy | None:
        return self._policies.get((method.upper(), path))

    def __contains__(self, key: tuple[str, str]) -> bool:
        method, path = key
        return (method.upper(), path) in self._policies

    def __len__(self) -> int:
        return len(self._policies)
