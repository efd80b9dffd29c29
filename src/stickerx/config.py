"""Environment-based configuration for StickerX."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from STICKERX_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STICKERX_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083

    # Authentication (None = disabled)
    api_key: str | None = None

    # Sticker assets
    assets_dir: str = "assets/stickers"
    image_cache_capacity: int = Field(default=10, ge=1)

    # Rendering
    debug_mode: bool = False
    debug_marker_radius: int = Field(default=8, ge=1)
    debug_stroke_width: int = Field(default=3, ge=1)
    mirror_front_camera: bool = True

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=52_428_800, ge=1)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
