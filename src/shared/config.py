"""Environment-aware configuration with validation.

This module provides centralized configuration management using Pydantic Settings.
All environment variables are validated at startup to fail fast on misconfigurations.
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are cached to avoid repeated parsing. The ffmpeg binary path is
    only a name here; resolving it against PATH happens once in the engine.

    Example:
        >>> settings = get_settings()
        >>> print(settings.segment_seconds)
        6
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        alias="ENVIRONMENT",
        description="Deployment environment",
    )

    # Transcoding engine
    ffmpeg_path: str = Field(
        default="ffmpeg",
        min_length=1,
        alias="FFMPEG_PATH",
        description="ffmpeg binary name or absolute path",
    )
    encode_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        alias="ENCODE_TIMEOUT_SECONDS",
        description="Deadline for a single ffmpeg invocation (unset = no deadline)",
    )

    # Encoding defaults
    segment_seconds: int = Field(
        default=6,
        ge=1,
        le=60,
        alias="SEGMENT_SECONDS",
        description="Target HLS segment duration for the default ladder",
    )
    video_codec: str = Field(
        default="libx264",
        alias="VIDEO_CODEC",
        description="ffmpeg video encoder for renditions",
    )
    audio_codec: str = Field(
        default="aac",
        alias="AUDIO_CODEC",
        description="ffmpeg audio encoder for renditions",
    )
    video_profile: str = Field(
        default="main",
        alias="VIDEO_PROFILE",
        description="H.264 profile passed as -profile:v",
    )

    # Scheduling
    max_parallel_renditions: int = Field(
        default=0,
        ge=0,
        le=32,
        alias="MAX_PARALLEL_RENDITIONS",
        description="Concurrent rendition encodes (0 = number of CPU cores)",
    )

    # Verification
    verify_renditions: bool = Field(
        default=True,
        alias="VERIFY_RENDITIONS",
        description="Validate each rendition playlist after it is encoded",
    )

    # Ladder override (JSON list of rendition objects)
    rendition_ladder: list[dict[str, Any]] | None = Field(
        default=None,
        alias="RENDITION_LADDER",
        description="Replaces the built-in rendition ladder",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("ffmpeg_path", mode="before")
    @classmethod
    def strip_ffmpeg_path(cls, v: str) -> str:
        """Drop surrounding whitespace from the binary path."""
        return v.strip() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for the lifetime of the process.

    Returns:
        Validated Settings instance

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()
