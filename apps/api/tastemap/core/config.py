"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    jwt_secret: str = Field(min_length=1)
    jwt_issuer: str = "tastemap-api"
    jwt_audience: str = "tastemap-clients"
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_ttl: int = Field(default=3600, gt=0)
    refresh_token_ttl: int = Field(default=86400, gt=0)

    auth_provider: Literal["mock", "firebase", "google"] = "google"
    google_client_id: str | None = None
    firebase_project_id: str | None = None
    firebase_audience: str | None = None

    model_config = SettingsConfigDict(env_prefix="TASTEMAP_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
