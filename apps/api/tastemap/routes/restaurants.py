"""Restaurant routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from tastemap.routes.dependencies import get_request_context, get_restaurant_service
from tastemap.schemas.auth import RequestContext
from tastemap.schemas.error import ErrorResponse
from tastemap.schemas.restaurant import CreateRestaurantRequest, Restaurant
from tastemap.services.restaurants import RestaurantService

router = APIRouter(prefix="/restaurants", tags=["Restaurants"], dependencies=[Depends(get_request_context)])


@router.post(
    "",
    response_model=Restaurant,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def create_restaurant(
    payload: CreateRestaurantRequest,
    context: Annotated[RequestContext, Depends(get_request_context)],
    service: Annotated[RestaurantService, Depends(get_restaurant_service)],
) -> Restaurant:
    return service.create_restaurant(owner_id=context.user_id, name=payload.name)


@router.get("/verified", response_model=list[Restaurant])
async def list_verified_restaurants(
    service: Annotated[RestaurantService, Depends(get_restaurant_service)],
) -> list[Restaurant]:
    return service.list_verified()


@router.get("/{id}", response_model=Restaurant, responses={404: {"model": ErrorResponse}})
async def get_restaurant(
    restaurant_id: Annotated[int, Path(alias="id")],
    service: Annotated[RestaurantService, Depends(get_restaurant_service)],
) -> Restaurant:
    return service.get_restaurant(restaurant_id=restaurant_id)
