"""Request/response schemas for user management endpoints."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.role import RoleName


class UserCreateRequest(BaseModel):
    """Body for POST /users (admin only)."""

    model_config = {"populate_by_name": True}

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role_name: str = Field(..., alias="roleName", min_length=1, max_length=32)


class UserProjection(BaseModel):
    """User as exposed outside the credential store: no password hash, role resolved to its name."""

    model_config = {"frozen": True, "from_attributes": True}

    id: int
    name: str
    email: str
    role: RoleName | None
    created_on: datetime
    updated_on: datetime
