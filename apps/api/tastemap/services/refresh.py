"""Refresh token exchange."""

import logging

from tastemap.core.logging_safety import safe_log_identifier
from tastemap.domain.directories import UserDirectory
from tastemap.errors import unauthorized
from tastemap.schemas.auth import TokenPair
from tastemap.services.tokens import TokenService, TokenVerificationError

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """Exchanges a refresh token for a new pair built from the current user record."""

    def __init__(self, users: UserDirectory, tokens: TokenService) -> None:
        self._users = users
        self._tokens = tokens

    def refresh(self, *, refresh_token: str) -> TokenPair:
        try:
            claims = self._tokens.verify_refresh_token(refresh_token)
        except TokenVerificationError as exc:
            logger.info("refresh.rejected reason=%s", exc)
            raise unauthorized("Invalid or expired refresh token") from exc

        safe_user_id = safe_log_identifier(claims.sub, prefix="uid")
        user = self._users.get_user(claims.sub)
        if user is None:
            logger.warning("refresh.rejected user_id=%s reason=unknown_user", safe_user_id)
            raise unauthorized("Invalid or expired refresh token")

        logger.info(
            "refresh.issued user_id=%s role=%s blocked=%s",
            safe_user_id,
            user.role.value,
            user.is_blocked,
        )
        return self._tokens.issue_pair(user)
