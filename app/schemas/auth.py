"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.roles import Role


class RegisterRequest(BaseModel):
    """Registration body. Fields are optional here so presence is checked by the service (400, not 422)."""

    name: str | None = Field(default=None, description="Display name")
    email: str | None = Field(default=None, description="Email address (case-insensitive)")
    password: str | None = Field(default=None, description="Password, at least 6 characters")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str | None = Field(default=None, description="Email address")
    password: str | None = Field(default=None, description="Password")


class PublicUser(BaseModel):
    """Public fields of a user; never includes the password hash or tokens."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: Role


class CurrentUser(PublicUser):
    """Identity decoded from a verified access token, attached to the request."""


class UserResponse(BaseModel):
    user: PublicUser


class AuthMessageResponse(BaseModel):
    """Response for register, login and refresh."""

    message: str
    user: PublicUser


class MessageResponse(BaseModel):
    message: str


class UserListItem(PublicUser):
    """User entry for the admin list (no password)."""

    created_at: datetime | None = None


class UsersListResponse(BaseModel):
    """Response for GET /protected/admin/users (admin only)."""

    users: list[UserListItem]
