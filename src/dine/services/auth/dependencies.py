"""FastAPI dependencies for cookie-based token authentication."""

import logging

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie

from src.dine.services.auth.exceptions import AuthenticationError
from src.dine.services.auth.models import AuthenticatedUser
from src.dine.services.container import ServiceContainer, get_services

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

access_cookie = APIKeyCookie(name=ACCESS_TOKEN_COOKIE, auto_error=False)


async def get_current_user(
    request: Request,
    token: str | None = Depends(access_cookie),
    services: ServiceContainer = Depends(get_services),
) -> AuthenticatedUser:
    """
    Resolve the caller's identity from the access-token cookie.

    The token is only proof of identity. Handlers that need user state must
    load it from the user repository.

    Args:
        request: Incoming request (identity is stored on request.state.user)
        token: Value of the accessToken cookie
        services: Application service graph

    Returns:
        AuthenticatedUser with the user id

    Raises:
        AuthenticationError: 401 if the cookie is missing, expired, or invalid

    Example:
        @router.get("/mine")
        async def mine(current_user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    if not token:
        logger.info("Auth failed: no access token cookie")
        raise AuthenticationError("Authorization token required")

    try:
        payload = services.tokens.verify_access_token(token)
    except AuthenticationError as e:
        logger.warning(f"Access token rejected: {e.message}", extra={"error": e.message})
        services.analytics.capture(
            distinct_id="anonymous",
            event="authentication_failed",
            properties={"error": type(e).__name__},
        )
        raise AuthenticationError() from e

    user = AuthenticatedUser(id=payload.id)
    request.state.user = user
    return user


async def get_optional_user(
    request: Request,
    token: str | None = Depends(access_cookie),
    services: ServiceContainer = Depends(get_services),
) -> AuthenticatedUser | None:
    """Like get_current_user, but anonymous or stale sessions resolve to None."""
    if not token:
        return None
    try:
        payload = services.tokens.verify_access_token(token)
    except AuthenticationError:
        return None
    user = AuthenticatedUser(id=payload.id)
    request.state.user = user
    return user
