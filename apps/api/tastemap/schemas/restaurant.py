"""Restaurant API schemas."""

from datetime import datetime

from pydantic import Field

from tastemap.schemas.base import ApiModel


class CreateRestaurantRequest(ApiModel):
    name: str = Field(min_length=1, max_length=128)


class Restaurant(ApiModel):
    id: int
    name: str
    owner_id: int
    verified: bool
    created_at: datetime
