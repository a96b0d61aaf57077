"""Email and password sign-in."""

import logging

from fastapi.concurrency import run_in_threadpool

from tastemap.core.logging_safety import mask_email, safe_log_identifier
from tastemap.core.passwords import PasswordComparisonError, PasswordHasher
from tastemap.domain.directories import UserDirectory
from tastemap.errors import ApiError, unauthorized
from tastemap.schemas.auth import TokenPair
from tastemap.services.tokens import TokenService

logger = logging.getLogger(__name__)

_INCORRECT_CREDENTIALS_MESSAGE = "Incorrect email or password"


def _comparison_unavailable() -> ApiError:
    return ApiError(
        status_code=408,
        code="PASSWORD_COMPARISON_UNAVAILABLE",
        message="Could not compare passwords",
    )


class CredentialAuthenticator:
    """Password sign-in. Hash comparison runs in the threadpool; directory reads stay on the event loop."""

    def __init__(self, users: UserDirectory, hasher: PasswordHasher, tokens: TokenService) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens

    async def sign_in(self, *, email: str, password: str) -> TokenPair:
        user = self._users.find_user_by_email(email)
        if user is None:
            logger.info("sign_in.rejected email=%s reason=unknown_email", mask_email(email))
            raise unauthorized(_INCORRECT_CREDENTIALS_MESSAGE)

        safe_user_id = safe_log_identifier(user.id, prefix="uid")
        if not user.password_hash:
            # Federation-only account: there is nothing to compare against.
            logger.info("sign_in.rejected user_id=%s reason=no_password_set", safe_user_id)
            raise _comparison_unavailable()

        try:
            is_equal = await run_in_threadpool(self._hasher.verify, password, user.password_hash)
        except PasswordComparisonError as exc:
            logger.warning(
                "sign_in.comparison_failed user_id=%s reason=%s",
                safe_user_id,
                type(exc.__cause__ or exc).__name__,
            )
            raise _comparison_unavailable() from exc

        if not is_equal:
            logger.info("sign_in.rejected user_id=%s reason=password_mismatch", safe_user_id)
            raise unauthorized(_INCORRECT_CREDENTIALS_MESSAGE)

        logger.info("sign_in.accepted user_id=%s role=%s", safe_user_id, user.role.value)
        return self._tokens.issue_pair(user)
