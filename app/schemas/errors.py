"""Schema for structured error responses."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    status: str = Field(default="error")
    error: str = Field(..., description="Stable error code, e.g. duplicate_email")
    message: str = Field(..., description="Human-readable message")
    detail: dict[str, Any] | None = Field(
        default=None,
        description="Diagnostics; omitted when APP_ENV=prod",
    )
