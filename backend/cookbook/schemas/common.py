"""
Cookbook Backend — Shared Response Schemas
============================================

What:  Error envelope, health and welcome response models.
Who:   Referenced by route `responses=` declarations (OpenAPI docs) and
       returned by the health and root endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description
        details: Optional extra context (e.g., the list of field errors)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "not_found",
            "message": "Recipe not found",
            "details": {"resource": "recipe", "resource_id": "42"},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check payload: service status plus a few store/upload facts."""
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    recipes: int = Field(description="Number of recipes currently held in memory")
    uploads_dir: str = Field(description="Upload directory status: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")


class WelcomeResponse(BaseModel):
    message: str
    status: str
