"""Auth service: register, login, refresh and logout, independent of HTTP."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.exceptions import (
    BadRequestError,
    ConflictError,
    TokenError,
    TokenExpiredError,
    UnauthorizedError,
)
from app.core.roles import DEFAULT_ROLE, Role, effective_role
from app.core.security import (
    BCRYPT_MAX_BYTES,
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    PASSWORD_MIN_LEN,
    access_claims_for,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models import User
from app.schemas.auth import PublicUser
from app.services import users as credential_store

logger = logging.getLogger(__name__)

MISSING_REGISTER_FIELDS = "Please provide name, email, and password"
PASSWORD_TOO_SHORT = f"Password must be at least {PASSWORD_MIN_LEN} characters"
PASSWORD_TOO_LONG = f"Password must be at most {BCRYPT_MAX_BYTES} bytes"
NAME_TOO_LONG = f"Name must be at most {NAME_MAX_LEN} characters"
EMAIL_TOO_LONG = f"Email must be at most {EMAIL_MAX_LEN} characters"
MISSING_LOGIN_FIELDS = "Please provide email and password"
# Same text for unknown email and wrong password.
INVALID_CREDENTIALS = "Invalid email or password"
REFRESH_NOT_PROVIDED = "Refresh token not provided"
REFRESH_INVALID_OR_EXPIRED = "Invalid or expired refresh token"
REFRESH_BAD_FORMAT = "Invalid token format"
REFRESH_MISMATCH = "Invalid refresh token"

# Checked against when the email is unknown, so both login failures cost one bcrypt check.
_DUMMY_HASH = hash_password("timing-equalizer-not-a-real-password")


@dataclass(frozen=True)
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class RefreshResult:
    user: User
    access_token: str


def public_user(user: User) -> PublicUser:
    """Public projection of a user record (id, email, name, effective role)."""
    return PublicUser(
        id=str(user.id),
        email=user.email,
        name=user.name,
        role=effective_role(user),
    )


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def create_user_with_role(
    db: Session,
    name: str | None,
    email: str | None,
    password: str | None,
    role: Role,
) -> User:
    """Validate input, hash the password and insert a user with the given role."""
    if _blank(name) or _blank(email) or not password:
        raise BadRequestError(MISSING_REGISTER_FIELDS)
    if len(password) < PASSWORD_MIN_LEN:
        raise BadRequestError(PASSWORD_TOO_SHORT)
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise BadRequestError(PASSWORD_TOO_LONG)
    if len(name.strip()) > NAME_MAX_LEN:
        raise BadRequestError(NAME_TOO_LONG)
    if len(credential_store.normalize_email(email)) > EMAIL_MAX_LEN:
        raise BadRequestError(EMAIL_TOO_LONG)

    # Cheap conflict check before paying for bcrypt; create_user re-checks at the index.
    if credential_store.find_by_email(db, email) is not None:
        raise ConflictError(credential_store.DUPLICATE_EMAIL_MESSAGE)

    user = credential_store.create_user(
        db,
        name=name.strip(),
        email=credential_store.normalize_email(email),
        password_hash=hash_password(password),
        role=role,
    )
    logger.info("User registered", extra={"user_id": user.id, "role": user.role})
    return user


def register_user(
    db: Session,
    name: str | None,
    email: str | None,
    password: str | None,
) -> User:
    """Self-service registration; always creates a 'user' account."""
    return create_user_with_role(db, name, email, password, DEFAULT_ROLE)


def authenticate(db: Session, email: str | None, password: str | None) -> LoginResult:
    """
    Check credentials and start a session.

    Issues an access/refresh pair and stores the refresh token on the user, replacing
    any previous one, so a login elsewhere ends the earlier session's ability to refresh.
    """
    if _blank(email) or not password:
        raise BadRequestError(MISSING_LOGIN_FIELDS)

    user = credential_store.find_by_email(db, email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login failed", extra={"reason": "invalid_credentials"})
        raise UnauthorizedError(INVALID_CREDENTIALS)

    access_token = create_access_token(access_claims_for(user))
    refresh_token = create_refresh_token(user.id)
    user = credential_store.update_refresh_token(db, user.id, refresh_token)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)


def refresh_access(db: Session, refresh_token: str | None) -> RefreshResult:
    """
    Exchange a refresh token for a new access token.

    The token must verify and must equal the copy stored for its user. The refresh
    token itself is not rotated.
    """
    if not refresh_token:
        raise UnauthorizedError(REFRESH_NOT_PROVIDED)

    try:
        payload = decode_token(refresh_token, expected_type="refresh")
    except TokenError as e:
        logger.info(
            "Refresh rejected",
            extra={"reason": "expired" if isinstance(e, TokenExpiredError) else "malformed"},
        )
        raise UnauthorizedError(REFRESH_INVALID_OR_EXPIRED) from e

    user_id = payload["id"]
    if not credential_store.is_valid_user_id(user_id):
        raise UnauthorizedError(REFRESH_BAD_FORMAT)

    user = credential_store.find_by_id(db, user_id)
    if user is None or user.refresh_token != refresh_token:
        logger.info("Refresh rejected", extra={"reason": "not_current", "user_id": user_id})
        raise UnauthorizedError(REFRESH_MISMATCH)

    access_token = create_access_token(access_claims_for(user))
    return RefreshResult(user=user, access_token=access_token)


def logout_user(db: Session, refresh_token: str | None) -> bool:
    """
    Best-effort server-side logout: clear the stored refresh token of the token's user.

    Returns True if a stored token was cleared. Never raises; token and store failures
    are logged and the caller still completes the logout.
    """
    if not refresh_token:
        return False
    try:
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id = payload["id"]
        if credential_store.find_by_id(db, user_id) is None:
            return False
        credential_store.update_refresh_token(db, user_id, None)
        logger.info("Logout cleared refresh token", extra={"user_id": user_id})
        return True
    except TokenError as e:
        logger.info("Logout with unusable refresh token", extra={"reason": e.message})
    except Exception as e:
        db.rollback()
        logger.exception("Error clearing refresh token on logout: %s", e)
    return False
