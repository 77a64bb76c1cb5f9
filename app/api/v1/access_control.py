"""Access-control dependencies: token extraction, current user, optional user and role gates."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from app.core.exceptions import (
    ForbiddenError,
    TokenError,
    TokenExpiredError,
    UnauthorizedError,
)
from app.core.roles import effective_role, normalize_required_roles
from app.core.security import decode_token
from app.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

TOKEN_NOT_PROVIDED = "Access token not provided. Please login to continue."
TOKEN_EXPIRED = "Access token has expired. Please refresh your session."
TOKEN_INVALID = "Invalid access token. Please login again."

security = HTTPBearer(auto_error=False)


def extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = None,
) -> str | None:
    """Return the access token from the cookie, else from the Bearer header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


def _identity_from_token(token: str) -> CurrentUser:
    """Verify an access token and build the identity; raises TokenError."""
    payload = decode_token(token, expected_type="access")
    try:
        return CurrentUser(
            id=payload["id"],
            email=payload.get("email") or "",
            name=payload.get("name") or "",
            role=effective_role(payload),
        )
    except ValidationError as e:
        raise TokenError("Token claims are incomplete", cause=e) from e


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """Dependency: require a valid access token (cookie or Bearer); attaches request.state.user."""
    token = extract_token(request, credentials)
    if not token:
        raise UnauthorizedError(TOKEN_NOT_PROVIDED)
    try:
        user = _identity_from_token(token)
    except TokenExpiredError:
        raise UnauthorizedError(TOKEN_EXPIRED)
    except TokenError as e:
        logger.info("Access token rejected", extra={"reason": e.message})
        raise UnauthorizedError(TOKEN_INVALID)
    request.state.user = user
    return user


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser | None:
    """Dependency: like get_current_user but never fails; anonymous requests get None."""
    user: CurrentUser | None = None
    token = extract_token(request, credentials)
    if token:
        try:
            user = _identity_from_token(token)
        except TokenError:
            user = None
    request.state.user = user
    return user


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """
    Dependency factory: require an authenticated user whose effective role is in roles.

    Missing or bad tokens give 401 (from get_current_user); a wrong role gives 403.
    """
    allowed = normalize_required_roles(roles)

    def _require(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if effective_role(current_user) not in allowed:
            raise ForbiddenError(
                f"Access denied. Required role: {' or '.join(sorted(allowed))}"
            )
        return current_user

    return _require


require_admin = require_roles("admin")
require_moderator = require_roles("admin", "moderator")
