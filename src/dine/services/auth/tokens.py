"""Signed access/refresh token issuance and verification."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from src.dine.services.auth.exceptions import (
    AuthConfigError,
    TokenExpiredError,
    TokenMalformedError,
)
from src.dine.services.auth.models import TokenPayload

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """
    Issues and verifies stateless HS256 tokens.

    Access and refresh tokens are signed with distinct secrets and carry only
    the user id (plus exp/iat and a type marker). Verification uses zero leeway
    so expiry is exact to the second.

    Attributes:
        access_secret: Secret for short-lived access tokens
        refresh_secret: Secret for long-lived refresh tokens
        access_ttl: Lifetime of access tokens (default: 15 minutes)
        refresh_ttl: Lifetime of refresh tokens (default: 7 days)
        algorithm: JWS algorithm (default: HS256)

    Example:
        >>> tokens = TokenService("access-secret", "refresh-secret")
        >>> token = tokens.issue_access_token("user-123")
        >>> tokens.verify_access_token(token).id
        'user-123'
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize token service.

        Args:
            access_secret: Access token signing secret
            refresh_secret: Refresh token signing secret
            access_ttl: Access token lifetime
            refresh_ttl: Refresh token lifetime
            algorithm: Signing algorithm
            clock: Returns the current UTC time used for issuance

        Raises:
            AuthConfigError: If a secret is unset or access_ttl >= refresh_ttl
        """
        if not access_secret:
            raise AuthConfigError("JWT access secret is not configured")
        if not refresh_secret:
            raise AuthConfigError("JWT refresh secret is not configured")
        if access_ttl >= refresh_ttl:
            raise AuthConfigError("Access token TTL must be shorter than refresh token TTL")

        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm
        self._clock = clock

    def issue_access_token(self, user_id: str) -> str:
        """Sign a short-lived access token for user_id."""
        return self._issue(user_id, self.access_secret, self.access_ttl, ACCESS_TOKEN_TYPE)

    def issue_refresh_token(self, user_id: str) -> str:
        """Sign a long-lived refresh token for user_id."""
        return self._issue(user_id, self.refresh_secret, self.refresh_ttl, REFRESH_TOKEN_TYPE)

    def verify_access_token(self, token: str) -> TokenPayload:
        """Verify an access token and return its identity."""
        return self.verify(token, self.access_secret, expected_type=ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> TokenPayload:
        """Verify a refresh token and return its identity."""
        return self.verify(token, self.refresh_secret, expected_type=REFRESH_TOKEN_TYPE)

    def verify(
        self, token: str, secret: str, expected_type: str | None = None
    ) -> TokenPayload:
        """
        Verify token signature and expiry against secret.

        Args:
            token: Encoded JWT
            secret: Secret the token is expected to be signed with
            expected_type: Required 'type' claim, if any

        Returns:
            TokenPayload with the user id

        Raises:
            TokenExpiredError: If the exp claim has passed
            TokenMalformedError: If the token is garbage, badly signed, or lacks an id
        """
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_aud": False,
                    "require_exp": True,
                    "leeway": 0,
                },
            )
        except ExpiredSignatureError as e:
            logger.info("Token expired", extra={"error_type": "token_expired"})
            raise TokenExpiredError() from e
        except JWTError as e:
            logger.warning(
                f"Token verification failed: {e}",
                extra={"error_type": "token_malformed", "error": str(e)},
            )
            raise TokenMalformedError() from e

        user_id = claims.get("id")
        if not user_id or not isinstance(user_id, str):
            raise TokenMalformedError("Invalid token: missing user ID")

        if expected_type is not None and claims.get("type") != expected_type:
            logger.warning(
                "Token type mismatch",
                extra={"expected": expected_type, "actual": claims.get("type")},
            )
            raise TokenMalformedError()

        return TokenPayload(id=user_id)

    def _issue(self, user_id: str, secret: str, ttl: timedelta, token_type: str) -> str:
        issued_at = self._clock()
        claims = {
            "id": str(user_id),
            "type": token_type,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(claims, secret, algorithm=self.algorithm)
