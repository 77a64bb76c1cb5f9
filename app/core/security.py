"""Password hashing and JWT creation/verification for access and refresh tokens."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
import jwt

from app.core.config import settings
from app.core.exceptions import TokenExpiredError, TokenMalformedError
from app.core.roles import effective_role

TokenType = Literal["access", "refresh"]

# Claims copied into an access token; the refresh token only carries the id.
ACCESS_CLAIM_KEYS = ("id", "email", "name", "role")

# Registration rules. bcrypt ignores input past 72 bytes, so longer passwords are refused.
PASSWORD_MIN_LEN = 6
BCRYPT_MAX_BYTES = 72
# Column widths in app/models/user.py.
NAME_MAX_LEN = 255
EMAIL_MAX_LEN = 320


def hash_password(plain_password: str) -> str:
    """
    Hash a plain-text password for storage. Do not store plain passwords.

    Raises ValueError for passwords longer than BCRYPT_MAX_BYTES.
    """
    pw_bytes = plain_password.encode("utf-8")
    if len(pw_bytes) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash; over-long passwords never match."""
    pw_bytes = plain_password.encode("utf-8")
    if len(pw_bytes) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def access_claims_for(user: Any) -> dict[str, Any]:
    """Build access-token claims (id, email, name, role) from a user record."""
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": effective_role(user),
    }


def _encode(payload: dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {**payload, "iat": now, "exp": now + expires_delta}
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def create_access_token(
    claims: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a short-lived access token carrying id, email, name and role."""
    payload: dict[str, Any] = {key: claims.get(key) for key in ACCESS_CLAIM_KEYS}
    payload["id"] = str(payload["id"])
    payload["role"] = effective_role(claims)
    payload["type"] = "access"
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(payload, expires_delta)


def create_refresh_token(
    user_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a long-lived refresh token carrying only the user id.

    jti makes every token unique, so two logins in the same second differ.
    """
    payload = {"id": str(user_id), "type": "refresh", "jti": secrets.token_hex(16)}
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(payload, expires_delta)


def decode_token(token: str, expected_type: TokenType | None = None) -> dict[str, Any]:
    """
    Verify signature and expiry; return the claims.

    Raises TokenExpiredError when past expiry, TokenMalformedError for anything else
    (bad signature, bad shape, missing id, or a token of the wrong type).
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired", cause=e) from e
    except jwt.PyJWTError as e:
        raise TokenMalformedError("Token is invalid", cause=e) from e

    if not isinstance(payload.get("id"), str) or not payload["id"]:
        raise TokenMalformedError("Token payload has no id")
    if expected_type is not None and payload.get("type") != expected_type:
        raise TokenMalformedError(f"Expected a {expected_type} token")
    return payload
