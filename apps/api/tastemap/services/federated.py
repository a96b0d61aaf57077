"""Federated (third-party) sign-in reconciliation."""

import logging
from dataclasses import replace

from fastapi.concurrency import run_in_threadpool

from tastemap.adapters.auth import FederatedIdentityVerifier
from tastemap.core.logging_safety import mask_email, safe_log_identifier
from tastemap.domain.directories import UserDirectory, UserRecord
from tastemap.errors import unauthorized
from tastemap.schemas.auth import FederatedIdentity, TokenPair, UserRole
from tastemap.services.tokens import TokenService

logger = logging.getLogger(__name__)


class FederatedIdentityBridge:
    """Signs in a provider-verified identity, linking or creating the local account.

    Resolution order is federated id, then email (the account adopts the federated
    id and provider names), then a new password-less account. Every failure,
    including storage errors, is reported as a single 401.

    Provider verification may hit the network and runs in the threadpool; account
    resolution and writes stay on the event loop.
    """

    def __init__(
        self,
        users: UserDirectory,
        verifier: FederatedIdentityVerifier,
        tokens: TokenService,
    ) -> None:
        self._users = users
        self._verifier = verifier
        self._tokens = tokens

    async def authenticate(self, *, assertion: str) -> TokenPair:
        try:
            identity = await run_in_threadpool(self._verifier.verify_assertion, assertion)
            user = self._resolve_user(identity)
            return self._tokens.issue_pair(user)
        except Exception as exc:
            logger.warning("federated_auth.rejected reason=%s", type(exc).__name__)
            raise unauthorized("Invalid federated identity") from exc

    def _resolve_user(self, identity: FederatedIdentity) -> UserRecord:
        safe_federated_id = safe_log_identifier(identity.federated_id, prefix="fid")

        user = self._users.find_user_by_federated_id(identity.federated_id)
        if user is not None:
            logger.info(
                "federated_auth.accepted federated_id=%s user_id=%s resolution=federated_id",
                safe_federated_id,
                safe_log_identifier(user.id, prefix="uid"),
            )
            return user

        if not identity.email:
            raise ValueError("Identity assertion carries no email to reconcile")

        user = self._users.find_user_by_email(identity.email)
        if user is not None:
            merged = replace(
                user,
                federated_id=identity.federated_id,
                first_name=identity.first_name or user.first_name,
                last_name=identity.last_name or user.last_name,
            )
            saved = self._users.save_user(merged)
            logger.info(
                "federated_auth.accepted federated_id=%s user_id=%s resolution=email_merge",
                safe_federated_id,
                safe_log_identifier(saved.id, prefix="uid"),
            )
            return saved

        created = self._users.create_user(
            first_name=identity.first_name or "",
            last_name=identity.last_name or "",
            email=identity.email,
            role=UserRole.USER,
            federated_id=identity.federated_id,
        )
        logger.info(
            "federated_auth.accepted federated_id=%s user_id=%s resolution=created email=%s",
            safe_federated_id,
            safe_log_identifier(created.id, prefix="uid"),
            mask_email(created.email),
        )
        return created
