"""Cookie-carrying API client with a single refresh-and-retry on 401, plus session state."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.roles import Role, effective_role

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error. Please check your connection and try again."
REFRESH_PATH = "/auth/refresh"


class AuthApiError(Exception):
    """Raised for non-2xx responses (status set) and transport failures (status None)."""

    def __init__(self, message: str, status: int | None = None, data: Any = None) -> None:
        self.message = message
        self.status = status
        self.data = data
        super().__init__(message)


@dataclass
class SessionState:
    """Who is logged in on this client. Owned by the application root, passed explicitly."""

    user: dict[str, Any] | None = None
    loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def role(self) -> Role | None:
        if self.user is None:
            return None
        return effective_role(self.user)

    def clear(self) -> None:
        self.user = None


def _parse_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


class AuthClient:
    """
    Thin wrapper over httpx.Client for the auth API. Cookies set by the server are kept
    in the client's jar and sent back on every request.

    A supplied http_client keeps its own base_url; base_url is only applied when it has none.
    """

    def __init__(
        self,
        base_url: str = "",
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        if http_client is None:
            http_client = httpx.Client(base_url=base_url, timeout=timeout)
        elif base_url and not str(http_client.base_url):
            http_client.base_url = base_url
        self._client = http_client

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    def has_session_cookie(self) -> bool:
        return bool(self.cookies.get("refreshToken") or self.cookies.get("accessToken"))

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AuthClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def api_fetch(self, method: str, path: str, json: Any = None) -> Any:
        """Send one request; return the decoded body or raise AuthApiError."""
        try:
            response = self._client.request(method, path, json=json)
        except httpx.TransportError as e:
            raise AuthApiError(NETWORK_ERROR) from e

        data = _parse_body(response)
        if response.is_success:
            return data

        message = None
        if isinstance(data, dict):
            message = data.get("message")
        raise AuthApiError(
            message or f"HTTP error! status: {response.status_code}",
            status=response.status_code,
            data=data,
        )

    def authenticated_fetch(self, method: str, path: str, json: Any = None) -> Any:
        """
        Like api_fetch, but a 401 triggers exactly one refresh and one retry.

        If the refresh fails, or the retried request fails, that error propagates.
        """
        try:
            return self.api_fetch(method, path, json=json)
        except AuthApiError as e:
            if e.status != 401:
                raise
        logger.info("Access rejected; refreshing session once", extra={"path": path})
        try:
            self.api_fetch("POST", REFRESH_PATH)
        except AuthApiError as refresh_error:
            logger.info("Token refresh failed", extra={"status": refresh_error.status})
            raise
        return self.api_fetch(method, path, json=json)


class SessionGuard:
    """Login/register/logout/refresh operations that keep a SessionState in sync."""

    def __init__(self, client: AuthClient, state: SessionState | None = None) -> None:
        self.client = client
        self.state = state if state is not None else SessionState()

    def initialize(self) -> SessionState:
        """Restore the session on start-up by refreshing when a session cookie is present."""
        try:
            if not self.client.has_session_cookie():
                self.state.clear()
                return self.state
            data = self.client.api_fetch("POST", REFRESH_PATH)
            self.state.user = data.get("user") if isinstance(data, dict) else None
        except AuthApiError as e:
            if e.status != 401:
                logger.warning("Auth initialization error: %s", e.message)
            self.state.clear()
        finally:
            self.state.loading = False
        return self.state

    def login(self, email: str, password: str) -> dict[str, Any]:
        data = self.client.api_fetch(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        self.state.user = data.get("user")
        return data

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        """Register, then log in with the same credentials."""
        self.client.api_fetch(
            "POST",
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        return self.login(email, password)

    def logout(self) -> None:
        """Tell the server, but clear local state even if that call fails."""
        try:
            self.client.api_fetch("POST", "/auth/logout")
        except AuthApiError as e:
            logger.warning("Logout request failed: %s", e.message)
        finally:
            self.state.clear()

    def refresh_auth(self) -> SessionState:
        try:
            data = self.client.api_fetch("POST", REFRESH_PATH)
        except AuthApiError:
            self.state.clear()
            raise
        self.state.user = data.get("user") if isinstance(data, dict) else None
        return self.state

    def fetch(self, method: str, path: str, json: Any = None) -> Any:
        """Authenticated call; if the refresh-and-retry also fails, the session is dropped."""
        try:
            return self.client.authenticated_fetch(method, path, json=json)
        except AuthApiError as e:
            if e.status == 401:
                self.state.clear()
            raise
