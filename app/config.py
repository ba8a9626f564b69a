"""Application configuration models."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="ReelView", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    data_service_url: HttpUrl = Field(
        default="http://localhost:54321", alias="DATA_SERVICE_URL"
    )
    data_service_key: str | None = Field(default=None, alias="DATA_SERVICE_KEY")
    films_table: str = Field(default="films", alias="FILMS_TABLE")
    request_timeout_seconds: float = Field(
        default=15.0, alias="REQUEST_TIMEOUT", gt=0, le=120
    )

    skeleton_count: int = Field(default=8, alias="SKELETON_COUNT", ge=1, le=48)
    initial_render_timeout: float = Field(
        default=2.0, alias="INITIAL_RENDER_TIMEOUT", ge=0, le=30
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("films_table", mode="before")
    @classmethod
    def _validate_table_name(cls, value: object) -> str:
        """Only accept bare identifiers so the table is safe to splice into a path."""

        text = str(value or "").strip()
        if not TABLE_NAME_RE.match(text):
            raise ValueError("FILMS_TABLE must be a plain identifier")
        return text

    @field_validator("data_service_key", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def data_service_base_url(self) -> str:
        """Return the service root without a trailing slash."""

        return str(self.data_service_url).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
