"""Credential store: persistence for users and roles, and the password hashing policy."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from app.core.errors import DuplicateEmail, NotFound, StoreUnavailable, ValidationError
from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    verify_password,
)
from app.models import DEFAULT_ROLE_PERMISSIONS, Role, RoleName, User
from app.schemas.users import UserProjection

logger = logging.getLogger(__name__)


def _normalize_email(email: str | None) -> str:
    if not email or not email.strip():
        raise ValidationError("Email is required.", detail={"field": "email"})
    email = email.strip()
    if len(email) > EMAIL_MAX_LEN:
        raise ValidationError("Email is too long.", detail={"field": "email"})
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(
            "Email is not a valid address.",
            detail={"field": "email", "reason": str(e)},
        ) from e
    return email


def _validate_name(name: str | None) -> str:
    name = (name or "").strip()
    if not (NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN):
        raise ValidationError("Name is required (1-255 characters).", detail={"field": "name"})
    return name


def _validate_password(password: str | None) -> str:
    if not password or not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            detail={"field": "password"},
        )
    return password


def to_projection(user: User) -> UserProjection:
    """Strip the password hash and replace role_id with the role name."""
    return UserProjection(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role.name if user.role is not None else None,
        created_on=user.created_on,
        updated_on=user.updated_on,
    )


class CredentialStore:
    """
    Users and roles backed by a SQLAlchemy session.

    Password hashing is an explicit step of create_user/update_password. Database
    timeouts and connection failures surface as StoreUnavailable without retries.
    """

    def __init__(self, session: Session, bcrypt_rounds: int | None = None) -> None:
        self.session = session
        self.bcrypt_rounds = bcrypt_rounds

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except (sa_exc.OperationalError, sa_exc.TimeoutError) as e:
            self.session.rollback()
            logger.error(
                "Credential store unavailable",
                extra={"operation": operation, "error_type": type(e).__name__},
            )
            raise StoreUnavailable(
                "The user database is unavailable. Try again later.",
                detail={"operation": operation},
            ) from e
        except sa_exc.DBAPIError as e:
            if not e.connection_invalidated:
                raise
            self.session.rollback()
            logger.error("Credential store connection lost", extra={"operation": operation})
            raise StoreUnavailable(
                "The user database connection was lost. Try again later.",
                detail={"operation": operation},
            ) from e

    def find_role_by_name(self, name: str | RoleName) -> Role | None:
        role_name = name if isinstance(name, RoleName) else RoleName.parse(name)
        if role_name is None:
            return None
        with self._guard("find_role_by_name"):
            return self.session.query(Role).filter(Role.name == role_name).first()

    def seed_roles(self) -> list[Role]:
        """Create any missing role rows. Safe to run repeatedly."""
        with self._guard("seed_roles"):
            roles = []
            for role_name, permission in DEFAULT_ROLE_PERMISSIONS.items():
                role = self.session.query(Role).filter(Role.name == role_name).first()
                if role is None:
                    role = Role(name=role_name, permission=dict(permission))
                    self.session.add(role)
                    logger.info("Seeded role", extra={"role": role_name.value})
                roles.append(role)
            self.session.commit()
            return roles

    def create_user(self, name: str, email: str, password: str, role_id: int) -> User:
        """
        Validate, hash the password and insert a user.

        Raises ValidationError for missing/malformed fields and DuplicateEmail when the
        email is taken (checked up front and again via the unique constraint).
        """
        name = _validate_name(name)
        email = _normalize_email(email)
        password = _validate_password(password)
        if role_id is None:
            raise ValidationError("Role is required.", detail={"field": "role_id"})

        with self._guard("create_user"):
            if self.session.query(User.id).filter(User.email == email).first() is not None:
                raise DuplicateEmail("Email already in use.")
            user = User(
                name=name,
                email=email,
                role_id=role_id,
                password_hash=hash_password(password, self.bcrypt_rounds),
            )
            self.session.add(user)
            try:
                self.session.commit()
            except sa_exc.IntegrityError as e:
                self.session.rollback()
                if "email" in str(e.orig).lower():
                    raise DuplicateEmail("Email already in use.") from e
                raise ValidationError(
                    "User violates a database constraint.",
                    detail={"reason": str(e.orig)},
                ) from e
            self.session.refresh(user)
            return user

    def update_password(self, user_id: int, new_password: str) -> User:
        """Rehash and store a new password; updated_on is refreshed by the update."""
        new_password = _validate_password(new_password)
        with self._guard("update_password"):
            user = self.session.get(User, user_id)
            if user is None:
                raise NotFound("User not found.")
            user.password_hash = hash_password(new_password, self.bcrypt_rounds)
            self.session.commit()
            self.session.refresh(user)
            return user

    def find_user_by_email(self, email: str) -> User | None:
        if not email:
            return None
        with self._guard("find_user_by_email"):
            return self.session.query(User).filter(User.email == email.strip()).first()

    def find_user_by_id(self, user_id: int) -> User | None:
        with self._guard("find_user_by_id"):
            return self.session.get(User, user_id)

    def list_users(self) -> list[User]:
        """All users, newest first."""
        with self._guard("list_users"):
            return (
                self.session.query(User)
                .order_by(User.created_on.desc(), User.id.desc())
                .all()
            )

    @staticmethod
    def verify_password(user: User, candidate: str) -> bool:
        return verify_password(candidate, user.password_hash)
