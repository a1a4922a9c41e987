"""Session tokens: issue signed JWTs, verify them against the revocation list, revoke on logout."""

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt

from app.core.errors import RejectionReason, TokenRejected
from app.core.security import create_access_token, decode_access_token, read_unverified_claims
from app.models.role import RoleName
from app.schemas.auth import Identity

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def _timestamp(value: Any) -> datetime:
    """Convert a NumericDate claim to an aware datetime. Raises TypeError/ValueError on junk."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a numeric date, got {type(value).__name__}")
    return datetime.fromtimestamp(value, UTC)


def _revocation_details(token: str) -> tuple[Any, datetime | None]:
    """Best-effort (id, exp) of a token being revoked; (None, None) when unreadable."""
    try:
        claims = read_unverified_claims(token)
    except jwt.PyJWTError:
        return None, None
    try:
        return claims.get("id"), _timestamp(claims.get("exp"))
    except (TypeError, ValueError, OverflowError):
        return claims.get("id"), None


class TokenBlacklist:
    """
    Revoked token strings, shared by every request in the process.

    Each entry remembers the token's own expiry; entries are dropped once that passes,
    since an expired token is rejected regardless. Entries without a known expiry stay
    until the process exits.
    """

    def __init__(self) -> None:
        self._entries: dict[str, datetime | None] = {}
        self._lock = threading.Lock()

    def add(self, token: str, expires_at: datetime | None = None) -> None:
        with self._lock:
            self._entries[token] = expires_at

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def purge_expired(self, now: datetime) -> int:
        """Drop entries whose token has expired. Returns the number removed."""
        with self._lock:
            expired = [
                token
                for token, expires_at in self._entries.items()
                if expires_at is not None and expires_at <= now
            ]
            for token in expired:
                del self._entries[token]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class TokenService:
    """
    Issue and verify bearer tokens.

    A token goes issued -> valid -> expired or revoked and never becomes valid again.
    """

    def __init__(
        self,
        blacklist: TokenBlacklist,
        secret: str,
        lifetime: timedelta,
        algorithm: str = "HS256",
        clock: Clock = utc_now,
    ) -> None:
        self.blacklist = blacklist
        self.lifetime = lifetime
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        cfg: "Settings",
        blacklist: TokenBlacklist | None = None,
        clock: Clock = utc_now,
    ) -> "TokenService":
        return cls(
            blacklist if blacklist is not None else TokenBlacklist(),
            secret=cfg.JWT_SECRET.get_secret_value(),
            lifetime=timedelta(minutes=cfg.JWT_EXPIRE_MINUTES),
            algorithm=cfg.JWT_ALGORITHM,
            clock=clock,
        )

    def issue(self, user_id: int, email: str, role_name: RoleName | str) -> str:
        role = RoleName(role_name)
        return create_access_token(
            user_id,
            email,
            role.value,
            issued_at=self._clock(),
            lifetime=self.lifetime,
            secret=self._secret,
            algorithm=self._algorithm,
        )

    def verify(self, token: str | None, store: "CredentialStore") -> Identity:
        """
        Return the identity behind a token, re-read from the store.

        Checks run in order: malformed, revoked, bad signature, expired, user missing.
        Raises TokenRejected with the matching reason.
        """
        if not token:
            raise TokenRejected(RejectionReason.INVALID, "No token provided.")
        try:
            read_unverified_claims(token)
        except jwt.PyJWTError:
            raise TokenRejected(RejectionReason.INVALID, "Malformed token.")

        if token in self.blacklist:
            raise TokenRejected(RejectionReason.REVOKED)

        try:
            claims = decode_access_token(
                token, verify_exp=False, secret=self._secret, algorithm=self._algorithm
            )
        except jwt.PyJWTError:
            raise TokenRejected(RejectionReason.INVALID)

        try:
            user_id = int(claims["id"])
            issued_at = _timestamp(claims["iat"])
            expires_at = _timestamp(claims["exp"])
        except (KeyError, TypeError, ValueError, OverflowError):
            raise TokenRejected(RejectionReason.INVALID, "Invalid token payload.")
        if RoleName.parse(claims.get("role")) is None:
            raise TokenRejected(RejectionReason.INVALID, "Invalid token payload.")

        if self._clock() >= expires_at:
            raise TokenRejected(RejectionReason.EXPIRED)

        user = store.find_user_by_id(user_id)
        if user is None:
            raise TokenRejected(RejectionReason.INVALID, "Invalid token. User not found.")
        if user.role is None:
            raise TokenRejected(RejectionReason.INVALID, "Invalid token. User has no role.")

        return Identity(
            user_id=user.id,
            email=user.email,
            role=user.role.name,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def revoke(self, token: str) -> None:
        """Blacklist a token. Revoking twice, or revoking a token never issued, is a no-op success."""
        user_id, expires_at = _revocation_details(token)
        now = self._clock()
        purged = self.blacklist.purge_expired(now)
        self.blacklist.add(token, expires_at)
        logger.info(
            "Token revoked",
            extra={"user_id": user_id, "purged": purged, "blacklist_size": len(self.blacklist)},
        )
