"""Error taxonomy shared by services and endpoints; rendered as {"message": ...} JSON."""


class AuthError(Exception):
    """Base for errors that map to an HTTP status with a user-facing message."""

    status_code = 500

    def __init__(self, message: str, headers: dict[str, str] | None = None) -> None:
        self.message = message
        self.headers = headers
        super().__init__(message)


class BadRequestError(AuthError):
    """Missing or invalid input."""

    status_code = 400


class UnauthorizedError(AuthError):
    """Bad credentials or a missing, expired, invalid or stale token."""

    status_code = 401

    def __init__(self, message: str, headers: dict[str, str] | None = None) -> None:
        super().__init__(message, headers=headers or {"WWW-Authenticate": "Bearer"})


class ForbiddenError(AuthError):
    """Authenticated, but the role does not satisfy the route."""

    status_code = 403


class NotFoundError(AuthError):
    status_code = 404


class ConflictError(AuthError):
    """Duplicate email."""

    status_code = 409


class InternalError(AuthError):
    status_code = 500


class TokenError(Exception):
    """Raised by token verification; never rendered directly."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class TokenExpiredError(TokenError):
    """Signature is valid but the token is past its expiry."""


class TokenMalformedError(TokenError):
    """Bad signature, bad shape, missing claims or wrong token type."""
