"""Dependency wiring for routes."""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tastemap.adapters.auth import (
    FederatedIdentityVerifier,
    FirebaseIdentityVerifier,
    GoogleIdentityVerifier,
    MockIdentityVerifier,
)
from tastemap.core.config import Settings, get_settings
from tastemap.core.logging_safety import safe_log_identifier
from tastemap.core.passwords import PasswordHasher
from tastemap.domain.policies import AUTHENTICATED, OwnershipSource, RoutePolicy, RoutePolicyTable
from tastemap.errors import ApiError
from tastemap.repositories.memory import InMemoryStore
from tastemap.schemas.auth import RequestContext
from tastemap.services.admin import AdminDashboardService
from tastemap.services.federated import FederatedIdentityBridge
from tastemap.services.guards import GuardChain
from tastemap.services.notifications import NotificationDispatcher, NotificationService
from tastemap.services.refresh import RefreshCoordinator
from tastemap.services.restaurants import RestaurantService
from tastemap.services.sign_in import CredentialAuthenticator
from tastemap.services.tokens import TokenService
from tastemap.services.users import UserService
from tastemap.services.verification import VerificationWorkflow

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_route_policies(request: Request) -> RoutePolicyTable:
    return request.app.state.route_policies


def get_notification_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_dispatcher


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_service(settings: Annotated[Settings, Depends(get_settings)]) -> TokenService:
    return TokenService.from_settings(settings)


def get_identity_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> FederatedIdentityVerifier:
    """Resolve provider adapter from configuration."""
    if settings.auth_provider == "google":
        return GoogleIdentityVerifier(client_id=settings.google_client_id)
    if settings.auth_provider == "firebase":
        return FirebaseIdentityVerifier(
            project_id=settings.firebase_project_id,
            audience=settings.firebase_audience,
        )
    return MockIdentityVerifier()


def get_guard_chain(
    tokens: Annotated[TokenService, Depends(get_token_service)],
    store: Annotated[InMemoryStore, Depends(get_store)],
) -> GuardChain:
    return GuardChain(tokens=tokens, restaurants=store)


def _resolve_route_policy(request: Request, policies: RoutePolicyTable) -> RoutePolicy:
    route = request.scope.get("route")
    route_path = getattr(route, "path", request.url.path)
    # Unregistered routes fail closed to "authenticated, any role".
    return policies.resolve(request.method, route_path) or AUTHENTICATED


async def _extract_restaurant_id(request: Request, source: OwnershipSource) -> int | None:
    raw: Any
    if source.location == "path":
        raw = request.path_params.get(source.field_name)
    else:
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        raw = payload.get(source.field_name) if isinstance(payload, dict) else None

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


async def get_request_context(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    policies: Annotated[RoutePolicyTable, Depends(get_route_policies)],
    guard_chain: Annotated[GuardChain, Depends(get_guard_chain)],
) -> RequestContext:
    """Run authentication, role and ownership guards for the matched route."""
    correlation_id = _request_correlation_id(request)
    safe_correlation_id = safe_log_identifier(correlation_id, prefix="cid")
    policy = _resolve_route_policy(request, policies)
    bearer_token = credentials.credentials if credentials is not None else None

    restaurant_id = None
    if policy.ownership is not None:
        restaurant_id = await _extract_restaurant_id(request, policy.ownership)

    try:
        context = guard_chain.evaluate(policy, bearer_token, restaurant_id)
    except ApiError as exc:
        logger.warning(
            "guard.rejected correlation_id=%s method=%s path=%s code=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            exc.payload.code,
        )
        raise

    if context.identity is not None:
        logger.info(
            "guard.accepted correlation_id=%s method=%s path=%s principal_id=%s role=%s",
            safe_correlation_id,
            request.method,
            request.url.path,
            safe_log_identifier(context.identity.sub, prefix="pid"),
            context.identity.role.value,
        )
    return context


def get_credential_authenticator(
    store: Annotated[InMemoryStore, Depends(get_store)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> CredentialAuthenticator:
    return CredentialAuthenticator(users=store, hasher=hasher, tokens=tokens)


def get_refresh_coordinator(
    store: Annotated[InMemoryStore, Depends(get_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> RefreshCoordinator:
    return RefreshCoordinator(users=store, tokens=tokens)


def get_federated_identity_bridge(
    store: Annotated[InMemoryStore, Depends(get_store)],
    verifier: Annotated[FederatedIdentityVerifier, Depends(get_identity_verifier)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> FederatedIdentityBridge:
    return FederatedIdentityBridge(users=store, verifier=verifier, tokens=tokens)


def get_user_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> UserService:
    return UserService(users=store, hasher=hasher)


def get_restaurant_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> RestaurantService:
    return RestaurantService(store)


def get_verification_workflow(
    store: Annotated[InMemoryStore, Depends(get_store)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
) -> VerificationWorkflow:
    return VerificationWorkflow(requests=store, restaurants=store, notifications=dispatcher)


def get_notification_service(store: Annotated[InMemoryStore, Depends(get_store)]) -> NotificationService:
    return NotificationService(store)


def get_admin_dashboard_service(
    store: Annotated[InMemoryStore, Depends(get_store)],
    verification: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> AdminDashboardService:
    return AdminDashboardService(store, verification)
