"""Auth endpoints: register, login, refresh, logout and me. Tokens travel as httpOnly cookies."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.api.v1.access_control import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    get_current_user,
)
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.auth import (
    AuthMessageResponse,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from app.services.auth import (
    authenticate,
    logout_user,
    public_user,
    refresh_access,
    register_user,
)

router = APIRouter()


def _cookie_options() -> dict[str, Any]:
    """Attributes shared by set and clear, so browsers match the cookies on delete."""
    settings = get_settings()
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "domain": settings.COOKIE_DOMAIN if settings.is_production else None,
        "path": "/",
    }


def set_access_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=token,
        max_age=get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **_cookie_options(),
    )


def set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=token,
        max_age=get_settings().REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **_cookie_options(),
    )


def clear_auth_cookies(response: Response) -> None:
    for key in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(key=key, **_cookie_options())


@router.post(
    "/register",
    response_model=AuthMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> AuthMessageResponse:
    """Create a 'user' account. 400 on missing fields or short password, 409 if the email exists."""
    user = register_user(db, body.name, body.email, body.password)
    return AuthMessageResponse(message="User registered successfully", user=public_user(user))


@router.post("/login", response_model=AuthMessageResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> AuthMessageResponse:
    """
    Authenticate with email and password; sets accessToken and refreshToken cookies.

    A new login replaces the stored refresh token, so sessions started elsewhere can
    no longer refresh.
    """
    result = authenticate(db, body.email, body.password)
    set_access_cookie(response, result.access_token)
    set_refresh_cookie(response, result.refresh_token)
    return AuthMessageResponse(message="Login successful", user=public_user(result.user))


@router.post("/refresh", response_model=AuthMessageResponse)
def refresh(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> AuthMessageResponse:
    """Issue a new access token from the refreshToken cookie (the header is not consulted)."""
    result = refresh_access(db, request.cookies.get(REFRESH_TOKEN_COOKIE))
    set_access_cookie(response, result.access_token)
    return AuthMessageResponse(
        message="Token refreshed successfully", user=public_user(result.user)
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Clear the stored refresh token when possible; always clears cookies and succeeds."""
    logout_user(db, request.cookies.get(REFRESH_TOKEN_COOKIE))
    clear_auth_cookies(response)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserResponse)
def get_me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> UserResponse:
    """Return the identity attached by the access-token check."""
    return UserResponse(user=current_user)
