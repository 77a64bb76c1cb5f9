"""Protected resource routes: any authenticated user, moderator/admin, admin only, or optional auth."""

from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.access_control import (
    get_current_user,
    get_optional_user,
    require_admin,
    require_moderator,
)
from app.core.database import get_db
from app.core.roles import effective_role
from app.schemas.auth import CurrentUser, UserListItem, UsersListResponse
from app.services.users import list_users

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@router.get("/dashboard")
def get_dashboard(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict[str, Any]:
    return {
        "message": (
            f"Welcome back, {current_user.name}! You have successfully accessed "
            "the protected dashboard."
        ),
        "user": {"id": current_user.id, "email": current_user.email, "name": current_user.name},
        "timestamp": _now_iso(),
    }


@router.get("/profile")
def get_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict[str, Any]:
    return {
        "message": "Profile data retrieved successfully",
        "user": current_user.model_dump(),
    }


@router.get("/moderator")
def get_moderator_panel(
    current_user: Annotated[CurrentUser, Depends(require_moderator)],
) -> dict[str, Any]:
    """Content moderation area; roles admin or moderator."""
    return {
        "message": "Moderator panel access granted",
        "user": current_user.model_dump(),
        "timestamp": _now_iso(),
    }


@router.get("/admin")
def get_admin_panel(
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> dict[str, Any]:
    return {
        "message": "Admin panel access granted",
        "user": current_user.model_dump(),
        "timestamp": _now_iso(),
    }


@router.get("/admin/users", response_model=UsersListResponse)
def get_admin_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users (admin only). No password hashes or tokens."""
    users = list_users(db)
    return UsersListResponse(
        users=[
            UserListItem(
                id=u.id,
                email=u.email,
                name=u.name,
                role=effective_role(u),
                created_at=u.created_at,
            )
            for u in users
        ]
    )


@router.get("/public")
def get_public(
    current_user: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> dict[str, Any]:
    """Readable by anyone; the greeting is personalised when a valid token is present."""
    if current_user is None:
        return {"message": "Hello, guest!", "authenticated": False, "user": None}
    return {
        "message": f"Hello, {current_user.name}!",
        "authenticated": True,
        "user": current_user.model_dump(),
    }
