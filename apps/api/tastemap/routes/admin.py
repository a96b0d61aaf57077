"""Admin dashboard routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from tastemap.routes.dependencies import get_admin_dashboard_service, get_request_context
from tastemap.schemas.admin import DashboardSummary
from tastemap.schemas.error import ErrorResponse
from tastemap.services.admin import AdminDashboardService

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_request_context)])


@router.get(
    "/dashboard",
    response_model=DashboardSummary,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def get_dashboard(
    service: Annotated[AdminDashboardService, Depends(get_admin_dashboard_service)],
) -> DashboardSummary:
    return service.summary()
