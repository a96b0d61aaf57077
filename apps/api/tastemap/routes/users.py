"""User registration and admin account routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from tastemap.routes.dependencies import get_request_context, get_user_service
from tastemap.schemas.error import ErrorResponse
from tastemap.schemas.user import ChangeRoleRequest, CreateUserRequest, User
from tastemap.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"], dependencies=[Depends(get_request_context)])

_ADMIN_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def register_user(
    payload: CreateUserRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return await service.register(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )


@router.patch("/{id}/role", response_model=User, responses=_ADMIN_RESPONSES)
async def change_role(
    user_id: Annotated[int, Path(alias="id")],
    payload: ChangeRoleRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return service.change_role(user_id=user_id, role=payload.role)


@router.patch("/{id}/block", response_model=User, responses=_ADMIN_RESPONSES)
async def block_user(
    user_id: Annotated[int, Path(alias="id")],
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return service.set_blocked(user_id=user_id, blocked=True)


@router.patch("/{id}/unblock", response_model=User, responses=_ADMIN_RESPONSES)
async def unblock_user(
    user_id: Annotated[int, Path(alias="id")],
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return service.set_blocked(user_id=user_id, blocked=False)
