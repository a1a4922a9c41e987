"""User directory: create/read/list users through the credential store and the result cache."""

import logging

from app.core.errors import InvalidRole, NotFound, ValidationError
from app.models.role import RoleName
from app.schemas.users import UserProjection
from app.services.credential_store import CredentialStore, to_projection
from app.services.result_cache import ALL_USERS_KEY, ResultCache, user_key

logger = logging.getLogger(__name__)

VALID_ROLE_NAMES = ", ".join(f"'{r.value}'" for r in RoleName)


class UserDirectoryService:
    """Orchestration only; all state lives in the store and the cache."""

    def __init__(self, store: CredentialStore, cache: ResultCache) -> None:
        self.store = store
        self.cache = cache

    def create(self, name: str, email: str, password: str, role_name: str) -> UserProjection:
        """
        Create a user with the named role.

        The role is resolved first (InvalidRole if unknown). The all_users list is
        invalidated before returning, so any later list_all() sees the new user.
        """
        if not role_name or not role_name.strip():
            raise ValidationError("roleName is required.", detail={"field": "roleName"})
        role = self.store.find_role_by_name(role_name)
        if role is None:
            raise InvalidRole(
                f"Invalid roleName: '{role_name}'. Valid roles are {VALID_ROLE_NAMES}."
            )

        user = self.store.create_user(name, email, password, role.id)
        self.cache.invalidate(ALL_USERS_KEY)
        self.cache.invalidate(user_key(user.id))
        logger.info(
            "User created",
            extra={"user_id": user.id, "role": role.name.value},
        )
        return to_projection(user)

    def get_by_id(self, user_id: int) -> UserProjection:
        """Cache-through read on user:<id>. Raises NotFound; misses are not cached."""

        def load() -> UserProjection:
            user = self.store.find_user_by_id(user_id)
            if user is None:
                raise NotFound("User not found.")
            return to_projection(user)

        return self.cache.get_or_load(user_key(user_id), load)

    def list_all(self) -> tuple[UserProjection, ...]:
        """Cache-through read on all_users, newest first."""
        return self.cache.get_or_load(
            ALL_USERS_KEY,
            lambda: tuple(to_projection(u) for u in self.store.list_users()),
        )

    def change_password(self, user_id: int, new_password: str) -> UserProjection:
        user = self.store.update_password(user_id, new_password)
        self.cache.invalidate(user_key(user_id))
        self.cache.invalidate(ALL_USERS_KEY)
        logger.info("Password changed", extra={"user_id": user_id})
        return to_projection(user)
