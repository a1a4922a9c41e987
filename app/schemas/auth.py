"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.role import RoleName
from app.schemas.users import UserProjection


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class Identity(BaseModel):
    """Caller resolved from a verified bearer token."""

    model_config = {"frozen": True}

    user_id: int
    email: str
    role: RoleName
    issued_at: datetime
    expires_at: datetime


class LoginResponse(BaseModel):
    """JWT returned after successful login, with the user's projection."""

    message: str = "Login successful"
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserProjection


class LogoutResponse(BaseModel):
    message: str = "Logout successful. Token has been invalidated."


class TokenValidationResponse(BaseModel):
    """Response for GET /auth/validateToken."""

    valid: bool = True
    identity: Identity
