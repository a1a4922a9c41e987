"""Pydantic request/response schemas."""

from app.schemas.auth import (
    Identity,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    TokenValidationResponse,
)
from app.schemas.errors import ErrorResponse
from app.schemas.health import HealthResponse
from app.schemas.users import UserCreateRequest, UserProjection

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "Identity",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "TokenValidationResponse",
    "UserCreateRequest",
    "UserProjection",
]
