"""Register / login / refresh / logout workflow."""

import logging

from src.dine.services.auth.exceptions import (
    AuthenticationError,
    DuplicateUserError,
    InvalidCredentialsError,
)
from src.dine.services.auth.models import AuthResult, UserPublic
from src.dine.services.auth.passwords import PasswordHasher
from src.dine.services.auth.tokens import TokenService
from src.dine.services.database.models import User
from src.dine.services.database.repositories import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """
    Orchestrates the token lifecycle over the user repository.

    Tokens are stateless: logout cannot invalidate tokens already issued, and
    a rotated refresh token stays valid until it expires. Callers must
    overwrite stored credentials with the ones returned here.
    """

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        passwords: PasswordHasher,
    ) -> None:
        self.users = users
        self.tokens = tokens
        self.passwords = passwords

    async def register(self, email: str, password: str) -> AuthResult:
        """
        Create a user and open a session.

        Raises:
            DuplicateUserError: If the email is already registered
        """
        if await self.users.get_by_email(email) is not None:
            logger.info("Registration rejected: email already registered")
            raise DuplicateUserError()

        password_hash = await self.passwords.hash_async(password)
        # The repository re-checks uniqueness at the data layer.
        user = await self.users.create(email, password_hash)

        logger.info(f"User registered: {user.id}")
        return self._issue(user)

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate by email and password.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
        """
        user = await self.users.get_by_email(email)
        password_hash = user.password_hash if user else None

        if not await self.passwords.verify_async(password, password_hash) or user is None:
            logger.info("Login failed", extra={"error_type": "invalid_credentials"})
            raise InvalidCredentialsError()

        logger.info(f"User logged in: {user.id}")
        return self._issue(user)

    async def refresh(self, refresh_token: str | None) -> AuthResult:
        """
        Exchange a refresh token for a new access/refresh pair.

        Raises:
            InvalidCredentialsError: If the token is absent, expired, malformed,
                or its user no longer exists
        """
        if not refresh_token:
            raise InvalidCredentialsError("Refresh token required")

        try:
            payload = self.tokens.verify_refresh_token(refresh_token)
        except AuthenticationError as e:
            raise InvalidCredentialsError("Invalid refresh token") from e

        user = await self.users.get_by_id(payload.id)
        if user is None:
            logger.warning(
                "Refresh token for missing user",
                extra={"error_type": "refresh_user_missing", "user_id": payload.id},
            )
            raise InvalidCredentialsError("Invalid refresh token")

        logger.info(f"Tokens refreshed for user {user.id}")
        return self._issue(user)

    async def logout(self, user_id: str) -> None:
        """Session teardown. Nothing is stored server-side, so this only logs."""
        logger.info(f"User logged out: {user_id}")

    async def get_user(self, user_id: str) -> UserPublic:
        """
        Resolve the current user from the repository.

        Raises:
            AuthenticationError: If the user behind a valid token no longer exists
        """
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        return UserPublic(id=user.id, email=user.email)

    def _issue(self, user: User) -> AuthResult:
        return AuthResult(
            access_token=self.tokens.issue_access_token(user.id),
            refresh_token=self.tokens.issue_refresh_token(user.id),
            user=UserPublic(id=user.id, email=user.email),
        )
