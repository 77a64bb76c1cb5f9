"""ORM model for application users (credentials, role and the active refresh token)."""

import uuid

from sqlalchemy import Column, DateTime, String, Text, func

from app.models.base import Base


def _new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User account for cookie/JWT authentication and role-based access control.

    email is stored lowercase and is unique at the storage layer.
    role: 'user', 'moderator' or 'admin'.
    refresh_token: the single currently valid refresh token, or NULL when logged out.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="user", server_default="user")
    refresh_token = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"
