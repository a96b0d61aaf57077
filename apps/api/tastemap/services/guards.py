"""Request-time access policy: authentication, then role, then restaurant ownership."""

from __future__ import annotations

import logging

from tastemap.core.logging_safety import safe_log_identifier
from tastemap.domain.directories import RestaurantDirectory
from tastemap.domain.policies import RoutePolicy
from tastemap.errors import ApiError, forbidden, not_found, unauthorized
from tastemap.schemas.auth import RequestContext, UserRole
from tastemap.services.tokens import BlockedIdentityError, TokenService, TokenVerificationError

logger = logging.getLogger(__name__)

ANONYMOUS = RequestContext()


class GuardChain:
    """Evaluates a route policy in a fixed order.

    Each stage either returns or raises; a failure short-circuits the stages after
    it. Ownership is the exception: it answers with a boolean deny and the caller
    translates ``False`` into 403.
    """

    def __init__(self, tokens: TokenService, restaurants: RestaurantDirectory) -> None:
        self._tokens = tokens
        self._restaurants = restaurants

    def authenticate(self, policy: RoutePolicy, bearer_token: str | None) -> RequestContext:
        if not policy.auth_required:
            return ANONYMOUS
        if not bearer_token:
            raise unauthorized("Invalid or missing bearer token")

        try:
            claims = self._tokens.verify_access_token(bearer_token)
        except BlockedIdentityError as exc:
            logger.warning(
                "guard.blocked user_id=%s",
                safe_log_identifier(exc.claims.sub, prefix="uid"),
            )
            raise ApiError(
                status_code=403,
                code="ACCOUNT_BLOCKED",
                message="Your account has been blocked. Please contact support.",
            ) from exc
        except TokenVerificationError as exc:
            raise unauthorized("Invalid or missing bearer token") from exc

        return RequestContext(identity=claims)

    def authorize_role(self, policy: RoutePolicy, context: RequestContext) -> None:
        if not policy.required_roles:
            return
        identity = context.identity
        if identity is None or identity.role not in policy.required_roles:
            raise forbidden("Insufficient role for this resource")

    def check_ownership(self, context: RequestContext, restaurant_id: int | None) -> bool:
        identity = context.identity
        if identity is None:
            return False
        if identity.role is UserRole.ADMIN:
            return True
        if restaurant_id is None:
            return False

        restaurant = self._restaurants.get_restaurant(restaurant_id)
        if restaurant is None:
            raise not_found("Restaurant not found.")
        return restaurant.owner_id == identity.sub

    def evaluate(
        self,
        policy: RoutePolicy,
        bearer_token: str | None,
        restaurant_id: int | None = None,
    ) -> RequestContext:
        """Run the whole chain for one request and return the resulting context."""
        context = self.authenticate(policy, bearer_token)
        self.authorize_role(policy, context)
        if policy.ownership is not None and not self.check_ownership(context, restaurant_id):
            raise forbidden("You do not own this restaurant.")
        return context


__all__ = ["ANONYMOUS", "GuardChain"]
