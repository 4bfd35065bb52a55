"""
Cookbook Backend — Application Configuration
==============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a module-level `settings` object.
Who:   Imported by the app factory, the upload service and the entrypoint.
When:  Loaded once at module import time; tests build their own Settings().
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    Attributes are grouped by concern.
    """

    # ── Image Uploads ─────────────────────────────────────────────────────
    # Directory that receives uploaded recipe images (created on demand)
    uploads_dir: str = Field(default="./uploads")

    # URL prefix under which stored images are served and referenced
    uploads_url_prefix: str = Field(default="/uploads")

    # Maximum accepted image size in bytes. Default: 5MB
    max_image_size: int = Field(default=5 * 1024 * 1024, ge=1024, le=52_428_800)

    @field_validator("uploads_url_prefix")
    @classmethod
    def validate_url_prefix(cls, v: str) -> str:
        """Normalizes the prefix to a single leading slash and no trailing slash."""
        stripped = v.strip("/")
        if not stripped:
            raise ValueError("uploads_url_prefix must name a path segment")
        return f"/{stripped}"

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated list of allowed origins
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=5000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # UPLOADS_DIR and uploads_dir both work
    }


settings = Settings()
