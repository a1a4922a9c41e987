"""ORM model for roles (closed set: admin, reader)."""

import enum

from sqlalchemy import JSON, Column, Enum, Integer
from sqlalchemy.dialects.postgresql import JSONB

from app.models.base import Base


class RoleName(str, enum.Enum):
    """Every role the system knows about. Role checks are exact matches; there is no hierarchy."""

    ADMIN = "admin"
    READER = "reader"

    @classmethod
    def parse(cls, value: str | None) -> "RoleName | None":
        """Return the role whose name is exactly value, or None for unknown or empty names."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# Permission documents seeded for each role.
DEFAULT_ROLE_PERMISSIONS: dict[RoleName, dict[str, str]] = {
    RoleName.ADMIN: {"description": "Administrator with full access"},
    RoleName.READER: {"description": "Reader with limited access"},
}


class Role(Base):
    """
    Role referenced by users.role_id.

    Rows are created once by seeding and are not modified afterwards.
    """

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(
        Enum(
            RoleName,
            name="role_name",
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        unique=True,
    )
    permission = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
