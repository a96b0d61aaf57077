"""User API schemas."""

from datetime import datetime

from pydantic import EmailStr, Field

from tastemap.schemas.auth import UserRole
from tastemap.schemas.base import ApiModel


class CreateUserRequest(ApiModel):
    first_name: str = Field(min_length=1, max_length=96)
    last_name: str = Field(min_length=1, max_length=96)
    email: EmailStr
    password: str = Field(min_length=8, max_length=96)
    role: UserRole = UserRole.USER


class ChangeRoleRequest(ApiModel):
    role: UserRole


class User(ApiModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: UserRole
    is_blocked: bool
    created_at: datetime
