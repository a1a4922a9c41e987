"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.role import DEFAULT_ROLE_PERMISSIONS, Role, RoleName
from app.models.user import User

__all__ = ["Base", "DEFAULT_ROLE_PERMISSIONS", "Role", "RoleName", "User"]
