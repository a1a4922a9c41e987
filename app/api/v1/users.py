"""User management endpoints (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.v1.auth import get_user_directory, require_admin
from app.schemas.auth import Identity
from app.schemas.users import UserCreateRequest, UserProjection
from app.services.user_directory import UserDirectoryService

router = APIRouter()


@router.post("", response_model=UserProjection, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreateRequest,
    _admin: Annotated[Identity, Depends(require_admin)],
    directory: Annotated[UserDirectoryService, Depends(get_user_directory)],
) -> UserProjection:
    """Create a user with roleName 'admin' or 'reader'. 409 if the email is taken."""
    return directory.create(body.name, str(body.email), body.password, body.role_name)


@router.get("", response_model=list[UserProjection])
def list_users(
    _admin: Annotated[Identity, Depends(require_admin)],
    directory: Annotated[UserDirectoryService, Depends(get_user_directory)],
) -> list[UserProjection]:
    """List all users, newest first."""
    return list(directory.list_all())


@router.get("/{user_id}", response_model=UserProjection)
def get_user(
    user_id: int,
    _admin: Annotated[Identity, Depends(require_admin)],
    directory: Annotated[UserDirectoryService, Depends(get_user_directory)],
) -> UserProjection:
    return directory.get_by_id(user_id)
