"""Access policy for every API route, keyed by method and route template."""

from tastemap.domain.policies import (
    AUTHENTICATED,
    PUBLIC,
    OwnershipSource,
    RoutePolicy,
    RoutePolicyTable,
    roles,
)
from tastemap.schemas.auth import UserRole

ADMIN = UserRole.ADMIN
OWNER = UserRole.RESTAURANT_OWNER

ROUTE_POLICIES: dict[str, dict[str, RoutePolicy]] = {
    "/auth/sign-in": {"POST": PUBLIC},
    "/auth/refresh-tokens": {"POST": PUBLIC},
    "/auth/google-authentication": {"POST": PUBLIC},
    "/users": {"POST": PUBLIC},
    "/users/{id}/role": {"PATCH": roles(ADMIN)},
    "/users/{id}/block": {"PATCH": roles(ADMIN)},
    "/users/{id}/unblock": {"PATCH": roles(ADMIN)},
    "/restaurants": {"POST": roles(OWNER)},
    "/restaurants/verified": {"GET": PUBLIC},
    "/restaurants/{id}": {"GET": PUBLIC},
    "/verification/request": {
        "POST": roles(OWNER, ADMIN, ownership=OwnershipSource(location="body", field_name="restaurantId")),
    },
    "/verification/pending": {"GET": roles(ADMIN)},
    "/verification/all": {"GET": roles(ADMIN)},
    "/verification/restaurant/{restaurantId}": {
        "GET": roles(OWNER, ADMIN, ownership=OwnershipSource(location="path", field_name="restaurantId")),
    },
    "/verification/{id}": {"GET": roles(OWNER, ADMIN)},
    "/verification/{id}/approve": {"PATCH": roles(ADMIN)},
    "/verification/{id}/reject": {"PATCH": roles(ADMIN)},
    "/admin/dashboard": {"GET": roles(ADMIN)},
    "/notifications": {"GET": AUTHENTICATED},
    "/notifications/{id}/read": {"PATCH": AUTHENTICATED},
}


def build_route_policy_table(prefix: str = "") -> RoutePolicyTable:
    table = RoutePolicyTable()
    for path, methods in ROUTE_POLICIES.items():
        for method, policy in methods.items():
            table.register(method, f"{prefix}{path}", policy)
    return table
