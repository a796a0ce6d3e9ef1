"""Central configuration for the check-in console service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = ROOT_DIR / ".env"


class Settings(BaseSettings):
    """Environment-driven settings for the scan pipeline and its collaborators."""

    model_config = SettingsConfigDict(
        env_file=str(DEFAULT_ENV_FILE),
        env_file_encoding="utf-8",
        env_prefix="CHECKIN_",
        case_sensitive=False,
    )

    api_base_url: str = Field(..., description="Base URL of the remote ticketing service")
    api_token: Optional[str] = Field(None, description="Fallback bearer credential when nobody is logged in")
    request_timeout_s: float = Field(15.0, description="Transport timeout for ticketing API calls")

    controller_host: str = Field("0.0.0.0", description="Host interface for local FastAPI server")
    controller_port: int = Field(5000, description="Port for FastAPI server")

    camera_index: int = Field(0, description="OpenCV device index used for camera scans")
    camera_enable_hardware: bool = Field(True, description="Open a real camera device for camera scans")
    camera_fps: int = Field(15, description="Target frame rate while waiting for a code")
    preview_frame_width: int = Field(640, description="Preview width for MJPEG streaming")
    preview_frame_height: int = Field(480, description="Preview height for MJPEG streaming")

    success_message: str = Field("Check-in completed successfully!")
    failure_message: str = Field("Check-in failed")
    not_found_message: str = Field("No QR code could be detected in the image")
    device_unavailable_message: str = Field("Camera is unavailable")

    log_level: str = Field("INFO", description="Logging level for the console")


@lru_cache()
def get_settings(override_env_file: Optional[Path] = None) -> Settings:
    """Cached Settings instance; accepts optional env override for tests."""

    if override_env_file:
        return Settings(_env_file=str(override_env_file))
    return Settings()
