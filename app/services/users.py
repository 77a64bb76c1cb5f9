"""Credential store: persistence of user records and their single active refresh token."""

import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, InternalError, NotFoundError
from app.core.roles import DEFAULT_ROLE, effective_role
from app.models import User

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_user_id(value: object) -> bool:
    """True if value has the shape of a user id (canonical UUID string)."""
    if not isinstance(value, str):
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def find_by_id(db: Session, user_id: object) -> User | None:
    """Return the user, or None for unknown or malformed ids (no query is issued for those)."""
    if not is_valid_user_id(user_id):
        return None
    return db.query(User).filter(User.id == str(user_id).lower()).first()


def create_user(
    db: Session,
    name: str,
    email: str,
    password_hash: str,
    role: str = DEFAULT_ROLE,
) -> User:
    """
    Insert a user. Raises ConflictError if the email is already registered.

    The lookup only gives a friendly fast path; the unique index on email decides
    concurrent registrations, and the losing insert also surfaces as ConflictError.
    """
    email = normalize_email(email)
    if find_by_email(db, email) is not None:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        name=name.strip(),
        email=email,
        password_hash=password_hash,
        role=effective_role({"role": role}),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info("Registration lost uniqueness race", extra={"email_domain": email.rsplit("@", 1)[-1]})
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Could not insert user")
        raise InternalError("Could not create user") from e
    db.refresh(user)
    return user


def update_refresh_token(db: Session, user_id: str, token: str | None) -> User:
    """
    Overwrite the stored refresh token (None clears it). Last write wins.

    Raises NotFoundError when the id is malformed or unknown.
    """
    user = find_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    user.refresh_token = token
    db.commit()
    db.refresh(user)
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at, User.email).all()
