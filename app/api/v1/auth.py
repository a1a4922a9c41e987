"""Login, logout and token validation, plus the auth dependencies (get_current_identity, require_role)."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import Unauthenticated, ValidationError
from app.core.security import dummy_password_hash, verify_password
from app.models.role import RoleName
from app.schemas.auth import (
    Identity,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    TokenValidationResponse,
)
from app.services.access_control import ensure_authorized
from app.services.credential_store import CredentialStore, to_projection
from app.services.result_cache import ResultCache
from app.services.token_service import TokenService
from app.services.user_directory import UserDirectoryService

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)

INVALID_CREDENTIALS = "Invalid credentials."


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_result_cache(request: Request) -> ResultCache:
    return request.app.state.result_cache


def get_credential_store(
    db: Annotated[Session, Depends(get_db)],
    app_settings: Annotated[Settings, Depends(get_app_settings)],
) -> CredentialStore:
    return CredentialStore(db, bcrypt_rounds=app_settings.BCRYPT_ROUNDS)


def get_user_directory(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    cache: Annotated[ResultCache, Depends(get_result_cache)],
) -> UserDirectoryService:
    return UserDirectoryService(store, cache)


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """Dependency: return the raw Bearer token. Raises 401 if the header is missing or not Bearer."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Access denied. No token provided or token is not Bearer type.")
    return credentials.credentials


def get_current_identity(
    token: Annotated[str, Depends(get_bearer_token)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> Identity:
    """Dependency: require a valid, unrevoked Bearer JWT and return the caller's identity."""
    return tokens.verify(token, store)


def require_role(role: RoleName) -> Callable[..., Identity]:
    """Dependency factory: require an authenticated caller with exactly this role (403 otherwise)."""

    def dependency(
        identity: Annotated[Identity, Depends(get_current_identity)],
    ) -> Identity:
        return ensure_authorized(identity, role)

    dependency.__name__ = f"require_{role.value}"
    return dependency


require_admin = require_role(RoleName.ADMIN)


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT and the user's projection.
    Include the token in the Authorization header as: Bearer <token>
    """
    user = store.find_user_by_email(body.email)
    if user is None:
        verify_password(body.password, dummy_password_hash(store.bcrypt_rounds))
        logger.info("Login failed", extra={"reason": "unknown_email"})
        raise Unauthenticated(INVALID_CREDENTIALS)
    if not store.verify_password(user, body.password):
        logger.info("Login failed", extra={"reason": "bad_password", "user_id": user.id})
        raise Unauthenticated(INVALID_CREDENTIALS)

    token = tokens.issue(user.id, user.email, user.role.name)
    logger.info("Login succeeded", extra={"user_id": user.id, "role": user.role.name.value})
    return LoginResponse(token=token, user=to_projection(user))


@router.post("/logout", response_model=LogoutResponse)
def logout(
    token: Annotated[str, Depends(get_bearer_token)],
    _identity: Annotated[Identity, Depends(get_current_identity)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> LogoutResponse:
    """Revoke the presented token. It is rejected as revoked from now on."""
    tokens.revoke(token)
    return LogoutResponse()


@router.get("/validateToken", response_model=TokenValidationResponse)
def validate_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> TokenValidationResponse:
    """For other services: 400 without a Bearer header, 401 for invalid/expired/revoked tokens."""
    if credentials is None or not credentials.credentials:
        raise ValidationError("No token provided or token is not Bearer type.")
    identity = tokens.verify(credentials.credentials, store)
    return TokenValidationResponse(valid=True, identity=identity)
