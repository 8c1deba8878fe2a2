"""
Service configuration loaded from environment variables (and an optional .env).

The extraction thresholds live here rather than in the extractors so they can
be tuned per deployment without touching the heuristics.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3001, alias="PORT")
    allowed_origin: str = Field(default="https://rodimusgpt.github.io", alias="ALLOWED_ORIGIN")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", alias="LOG_LEVEL")

    # Fetching
    fetch_timeout_seconds: float = Field(default=20.0, gt=0, alias="FETCH_TIMEOUT_SECONDS")

    # Extraction thresholds
    min_body_length: int = Field(default=1000, ge=0, alias="MIN_BODY_LENGTH")
    min_image_dimension: int = Field(default=300, ge=0, alias="MIN_IMAGE_DIMENSION")
    max_images: int = Field(default=10, ge=1, le=10, alias="MAX_IMAGES")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached after first load)."""
    return Settings()
