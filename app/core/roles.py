"""Roles and the single place where a user's effective role is resolved."""

from collections.abc import Iterable, Mapping
from typing import Literal, get_args

Role = Literal["user", "moderator", "admin"]

ROLES: tuple[str, ...] = get_args(Role)
DEFAULT_ROLE: Role = "user"


def effective_role(user: object) -> Role:
    """
    Return the role of a user record, identity object or claims mapping.

    Missing, empty or unknown roles resolve to DEFAULT_ROLE.
    """
    if user is None:
        return DEFAULT_ROLE
    if isinstance(user, Mapping):
        raw = user.get("role")
    else:
        raw = getattr(user, "role", None)
    if isinstance(raw, str) and raw in ROLES:
        return raw  # type: ignore[return-value]
    return DEFAULT_ROLE


def normalize_required_roles(required: str | Iterable[str]) -> frozenset[str]:
    """Accept one role or a collection of roles."""
    if isinstance(required, str):
        return frozenset({required})
    return frozenset(required)


def has_role(user: object, required: str | Iterable[str]) -> bool:
    """True if the user's effective role is one of the required roles."""
    return effective_role(user) in normalize_required_roles(required)
