"""Custom exceptions for authentication and authorization."""

from src.dine.exceptions import ConflictError, InternalError, UnauthorizedError


class AuthenticationError(UnauthorizedError):
    """Raised when authentication fails (invalid credentials, expired tokens, etc.)."""

    default_message = "Invalid or expired token"


class TokenExpiredError(AuthenticationError):
    """Raised when a token's exp claim is in the past."""

    default_message = "Token expired"


class TokenMalformedError(AuthenticationError):
    """Raised when a token cannot be decoded or its signature does not verify."""

    default_message = "Invalid token"


class InvalidCredentialsError(AuthenticationError):
    """Raised for any login/refresh failure.

    Unknown email and wrong password share this error and message so callers
    cannot enumerate accounts.
    """

    default_message = "Invalid credentials"


class DuplicateUserError(ConflictError):
    """Raised when registering an email that already exists."""

    default_message = "User already exists"


class AuthConfigError(InternalError):
    """Raised when token secrets or TTLs are missing or inconsistent."""

    default_message = "Server configuration error"
