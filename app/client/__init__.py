"""HTTP client side of the auth flow: session state, refresh-once guard and route gate."""

from app.client.routes import DEFAULT_ROUTES, RouteConfig, check_access
from app.client.session import AuthApiError, AuthClient, SessionGuard, SessionState

__all__ = [
    "AuthApiError",
    "AuthClient",
    "DEFAULT_ROUTES",
    "RouteConfig",
    "SessionGuard",
    "SessionState",
    "check_access",
]
