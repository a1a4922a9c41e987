"""Password hashing and JWT creation/verification for authentication."""

import uuid
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

# Min/max lengths for name, email and password validation.
NAME_MIN_LEN = 1
NAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Lowest bcrypt cost accepted for stored hashes.
MIN_BCRYPT_ROUNDS = 10

# Claims every session token must carry.
REQUIRED_CLAIMS = ("id", "email", "role", "iat", "exp")


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage with a fresh random salt. Do not store plain passwords."""
    rounds = settings.BCRYPT_ROUNDS if rounds is None else rounds
    if rounds < MIN_BCRYPT_ROUNDS:
        raise ValueError(f"bcrypt rounds must be at least {MIN_BCRYPT_ROUNDS}")
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (bcrypt compares in constant time)."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def dummy_password_hash(rounds: int | None = None) -> str:
    """
    Hash checked against when the email is unknown, so login timing does not reveal
    which emails exist. Built once per cost, at the same cost as stored hashes.
    """
    return _dummy_password_hash(settings.BCRYPT_ROUNDS if rounds is None else rounds)


@lru_cache(maxsize=8)
def _dummy_password_hash(rounds: int) -> str:
    return hash_password("dummy-password-for-timing", rounds)


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    *,
    issued_at: datetime | None = None,
    lifetime: timedelta | None = None,
    secret: str | None = None,
    algorithm: str | None = None,
) -> str:
    """Create a JWT access token carrying id, email, role, iat, exp and a unique jti."""
    now = issued_at or datetime.now(UTC)
    if lifetime is None:
        lifetime = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "id": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + lifetime,
        # Unique per token: equal claims never produce equal token strings.
        "jti": uuid.uuid4().hex,
    }
    if secret is None:
        secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=algorithm or settings.JWT_ALGORITHM,
    )


def read_unverified_claims(token: str) -> dict[str, Any]:
    """
    Parse a token without checking its signature or expiry.
    Raises jwt.DecodeError when the token is not a well-formed JWT.
    """
    return jwt.decode(token, options={"verify_signature": False})


def decode_access_token(
    token: str,
    verify_exp: bool = True,
    secret: str | None = None,
    algorithm: str | None = None,
) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (id, email, role, iat, exp).
    Raises jwt.PyJWTError on invalid signature, missing claims or (when verify_exp) expiry.
    """
    if secret is None:
        secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm or settings.JWT_ALGORITHM],
        options={
            "verify_exp": verify_exp,
            "verify_iat": False,
            "require": list(REQUIRED_CLAIMS),
        },
    )
