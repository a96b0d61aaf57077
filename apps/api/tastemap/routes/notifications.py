"""Notification inbox routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from tastemap.routes.dependencies import get_notification_service, get_request_context
from tastemap.schemas.auth import RequestContext
from tastemap.schemas.error import ErrorResponse
from tastemap.schemas.notification import Notification
from tastemap.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"], dependencies=[Depends(get_request_context)])


@router.get("", response_model=list[Notification], responses={401: {"model": ErrorResponse}})
async def list_notifications(
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> list[Notification]:
    return service.list_for_user(user_id=context.user_id)


@router.patch(
    "/{id}/read",
    response_model=Notification,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def mark_notification_read(
    notification_id: Annotated[int, Path(alias="id")],
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[NotificationService, Depends(get_notification_service)],
) -> Notification:
    return service.mark_read(user_id=context.user_id, notification_id=notification_id)
