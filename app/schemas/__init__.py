"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthMessageResponse,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    PublicUser,
    RegisterRequest,
    UserListItem,
    UserResponse,
    UsersListResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AuthMessageResponse",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PublicUser",
    "RegisterRequest",
    "UserListItem",
    "UserResponse",
    "UsersListResponse",
]
