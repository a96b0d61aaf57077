"""Restaurant verification routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from tastemap.routes.dependencies import get_request_context, get_verification_workflow
from tastemap.schemas.auth import RequestContext
from tastemap.schemas.error import ErrorResponse, FsmTransitionError
from tastemap.schemas.verification import (
    RejectVerificationRequest,
    RequestVerificationRequest,
    VerificationRequest,
)
from tastemap.services.verification import VerificationWorkflow

router = APIRouter(prefix="/verification", tags=["Verification"], dependencies=[Depends(get_request_context)])

_GUARD_RESPONSES = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


@router.post(
    "/request",
    response_model=VerificationRequest,
    status_code=status.HTTP_201_CREATED,
    responses={**_GUARD_RESPONSES, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def request_verification(
    payload: RequestVerificationRequest,
    context: Annotated[RequestContext, Depends(get_request_context)],
    workflow: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> VerificationRequest:
    return workflow.request(
        restaurant_id=payload.restaurant_id,
        requester_id=context.user_id,
        notes=payload.notes,
    )


@router.get("/pending", response_model=list[VerificationRequest], responses=_GUARD_RESPONSES)
async def get_pending_requests(
    workflow: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> list[VerificationRequest]:
    return workflow.find_pending()


@router.get("/all", response_model=list[VerificationRequest], responses=_GUARD_RESPONSES)
async def get_all_requests(
    workflow: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> list[VerificationRequest]:
    return workflow.find_all()


@router.get(
    "/restaurant/{restaurantId}",
    response_model=list[VerificationRequest],
    responses={**_GUARD_RESPONSES, 404: {"model": ErrorResponse}},
)
async def get_restaurant_requests(
    restaurant_id: Annotated[int, Path(alias="restaurantId")],
    workflow: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> list[VerificationRequest]:
    return workflow.find_by_restaurant(restaurant_id=restaurant_id)


@router.get(
    "/{id}",
    response_model=VerificationRequest,
    responses={**_GUARD_RESPONSES, 404: {"model": ErrorResponse}},
)
async def get_request(
    request_id: Annotated[int, Path(alias="id")],
    workflow: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> VerificationRequest:
    return workflow.find_by_id(request_id=request_id)


@router.patch(
    "/{id}/approve",
    response_model=VerificationRequest,
    responses={**_GUARD_RESPONSES, 400: {"model": FsmTransitionError}, 404: {"model": ErrorResponse}},
)
async def approve_request(
    request_id: Annotated[int, Path(alias="id")],
    context: Annotated[RequestContext, Depends(get_request_context)],
    workflow: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> VerificationRequest:
    return workflow.approve(request_id=request_id, admin_id=context.user_id)


@router.patch(
    "/{id}/reject",
    response_model=VerificationRequest,
    responses={**_GUARD_RESPONSES, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def reject_request(
    request_id: Annotated[int, Path(alias="id")],
    payload: RejectVerificationRequest,
    context: Annotated[RequestContext, Depends(get_request_context)],
    workflow: Annotated[VerificationWorkflow, Depends(get_verification_workflow)],
) -> VerificationRequest:
    return workflow.reject(
        request_id=request_id,
        admin_id=context.user_id,
        reason=payload.rejection_reason,
    )
