from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.signatures.models import Category

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"

    max_document_size_bytes: int = Field(default=5 * MIB, ge=1)
    max_image_size_bytes: int = Field(default=10 * MIB, ge=1)
    accepted_categories: frozenset[Category] = frozenset(Category)

    image_max_dimension: int = Field(default=1920, ge=1)
    image_quality: int = Field(default=80, ge=1, le=100)
    image_min_quality: int = Field(default=40, ge=1, le=100)
    image_quality_step: int = Field(default=10, ge=1)
    image_target_size_bytes: int = Field(default=1 * MIB, ge=1)
    image_fast_path_max_bytes: int = Field(default=1 * MIB, ge=0)
    image_max_pixels: int = Field(default=50_000_000, ge=1)

    verify_timeout_seconds: float = Field(default=5.0, gt=0)
    codec_timeout_seconds: float = Field(default=30.0, gt=0)
