"""Client route table and the gate deciding allowed / login / forbidden for a session."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from app.core.roles import has_role

if TYPE_CHECKING:
    from app.client.session import SessionState

AccessDecision = Literal["allowed", "login", "forbidden"]


@dataclass(frozen=True)
class RouteConfig:
    """A client route and its protection level; required_role is one role or several."""

    path: str
    is_protected: bool = False
    required_role: str | tuple[str, ...] | None = None
    fallback_path: str = "/login"
    title: str = ""
    description: str = ""


DEFAULT_ROUTES: tuple[RouteConfig, ...] = (
    RouteConfig("/", title="Home", description="Welcome to our application"),
    RouteConfig("/login", title="Login", description="Sign in to your account"),
    RouteConfig("/register", title="Register", description="Create a new account"),
    RouteConfig("/dashboard", is_protected=True, title="Dashboard", description="Your personal dashboard"),
    RouteConfig("/profile", is_protected=True, title="Profile", description="Manage your profile"),
    RouteConfig(
        "/admin",
        is_protected=True,
        required_role="admin",
        title="Admin Panel",
        description="Administrative controls",
    ),
    RouteConfig(
        "/moderator",
        is_protected=True,
        required_role=("admin", "moderator"),
        title="Moderator Panel",
        description="Content moderation tools",
    ),
)


def get_route_config(
    path: str,
    routes: Iterable[RouteConfig] = DEFAULT_ROUTES,
) -> RouteConfig | None:
    return next((route for route in routes if route.path == path), None)


def is_route_protected(path: str, routes: Iterable[RouteConfig] = DEFAULT_ROUTES) -> bool:
    config = get_route_config(path, routes)
    return config.is_protected if config else False


def get_required_role(
    path: str,
    routes: Iterable[RouteConfig] = DEFAULT_ROUTES,
) -> str | tuple[str, ...] | None:
    config = get_route_config(path, routes)
    return config.required_role if config else None


def check_access(state: "SessionState", route: RouteConfig) -> AccessDecision:
    """
    Decide whether the session may open route.

    Public routes are always allowed; protected routes need a user ("login" otherwise);
    a required role that the user lacks gives "forbidden".
    """
    if not route.is_protected:
        return "allowed"
    if state.user is None:
        return "login"
    if route.required_role is not None and not has_role(state.user, route.required_role):
        return "forbidden"
    return "allowed"
