"""Role-based access decisions. Exact role match only: admin does not imply reader."""

from dataclasses import dataclass

from app.core.errors import Forbidden
from app.models.role import RoleName
from app.schemas.auth import Identity


@dataclass(frozen=True)
class AccessDecision:
    permitted: bool
    reason: str | None = None


PERMITTED = AccessDecision(permitted=True)


def authorize(identity: Identity | None, required_role: RoleName) -> AccessDecision:
    """Decide whether identity may perform an operation that needs required_role."""
    role = identity.role if identity is not None else None
    if role is None:
        return AccessDecision(False, "Forbidden. User role information is missing.")
    if role != required_role:
        return AccessDecision(
            False,
            f"Forbidden. Access requires '{required_role.value}' role. "
            f"Your role is '{role.value}'.",
        )
    return PERMITTED


def ensure_authorized(identity: Identity | None, required_role: RoleName) -> Identity:
    """Like authorize(), but raise Forbidden on denial and return the identity otherwise."""
    decision = authorize(identity, required_role)
    if not decision.permitted:
        raise Forbidden(decision.reason or "Forbidden.")
    return identity
