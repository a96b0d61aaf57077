"""Authentication schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tastemap.schemas.base import ApiModel


class UserRole(str, Enum):
    USER = "user"
    RESTAURANT_OWNER = "restaurant_owner"
    ADMIN = "admin"


class IdentityClaims(BaseModel):
    """Decoded access-token payload, normalized for guards and handlers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sub: int
    email: str
    role: UserRole
    is_blocked: bool = Field(alias="isBlocked")
    iss: str
    aud: str
    iat: int
    exp: int


class RefreshClaims(BaseModel):
    model_config = ConfigDict(frozen=True)

    sub: int
    iss: str
    aud: str
    iat: int
    exp: int


class RequestContext(BaseModel):
    """Immutable per-request identity produced by the guard chain."""

    model_config = ConfigDict(frozen=True)

    identity: IdentityClaims | None = None

    @property
    def user_id(self) -> int:
        if self.identity is None:
            raise LookupError("Request context has no authenticated identity")
        return self.identity.sub


class FederatedIdentity(BaseModel):
    """Identity asserted by an external sign-in provider after verification."""

    federated_id: str = Field(min_length=1)
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class TokenPair(ApiModel):
    access_token: str
    refresh_token: str


class SignInRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshTokenRequest(ApiModel):
    refresh_token: str = Field(min_length=1)


class FederatedTokenRequest(ApiModel):
    token: str = Field(min_length=1)
