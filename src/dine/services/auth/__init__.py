"""Authentication module: tokens, password hashing, and identity models."""

from src.dine.services.auth.exceptions import (
    AuthConfigError,
    AuthenticationError,
    DuplicateUserError,
    InvalidCredentialsError,
    TokenExpiredError,
    TokenMalformedError,
)
from src.dine.services.auth.models import AuthenticatedUser, AuthResult, TokenPayload, UserPublic
from src.dine.services.auth.passwords import PasswordHasher
from src.dine.services.auth.tokens import TokenService

__all__ = [
    "AuthConfigError",
    "AuthenticationError",
    "DuplicateUserError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "TokenMalformedError",
    "AuthenticatedUser",
    "AuthResult",
    "TokenPayload",
    "UserPublic",
    "PasswordHasher",
    "TokenService",
]
