"""
CodeVault Backend — Shared Response Schemas
============================================

What:  Response models shared by every router (errors, health).
Who:   Referenced in route `responses=` declarations for the OpenAPI docs.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error response format for ALL error cases.

    Every error the API produces has this shape, so the frontend can show
    `error` in a toast without inspecting the status code first.

    Example:
        {
            "error": "Gemini API key is not configured",
            "details": "Please add GEMINI_API_KEY to your backend .env file.",
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Remediation hint or upstream detail")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Liveness check payload."""

    status: str = Field(description="Always 'ok' while the process serves requests")
    timestamp: datetime = Field(description="Server time (UTC ISO 8601)")
    version: str = Field(description="Application version")
