"""Sign-in, token refresh and federated sign-in routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from tastemap.routes.dependencies import (
    get_credential_authenticator,
    get_federated_identity_bridge,
    get_refresh_coordinator,
    get_request_context,
)
from tastemap.schemas.auth import FederatedTokenRequest, RefreshTokenRequest, SignInRequest, TokenPair
from tastemap.schemas.error import ErrorResponse
from tastemap.services.federated import FederatedIdentityBridge
from tastemap.services.refresh import RefreshCoordinator
from tastemap.services.sign_in import CredentialAuthenticator

router = APIRouter(prefix="/auth", tags=["Auth"], dependencies=[Depends(get_request_context)])


@router.post(
    "/sign-in",
    response_model=TokenPair,
    status_code=status.HTTP_200_OK,
    responses={401: {"model": ErrorResponse}, 408: {"model": ErrorResponse}},
)
async def sign_in(
    payload: SignInRequest,
    authenticator: Annotated[CredentialAuthenticator, Depends(get_credential_authenticator)],
) -> TokenPair:
    return await authenticator.sign_in(email=payload.email, password=payload.password)


@router.post(
    "/refresh-tokens",
    response_model=TokenPair,
    status_code=status.HTTP_200_OK,
    responses={401: {"model": ErrorResponse}},
)
async def refresh_tokens(
    payload: RefreshTokenRequest,
    coordinator: Annotated[RefreshCoordinator, Depends(get_refresh_coordinator)],
) -> TokenPair:
    return coordinator.refresh(refresh_token=payload.refresh_token)


@router.post(
    "/google-authentication",
    response_model=TokenPair,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse}},
)
async def google_authentication(
    payload: FederatedTokenRequest,
    bridge: Annotated[FederatedIdentityBridge, Depends(get_federated_identity_bridge)],
) -> TokenPair:
    return await bridge.authenticate(assertion=payload.token)
