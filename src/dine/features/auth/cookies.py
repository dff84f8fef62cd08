"""Session cookie handling.

Both tokens are delivered as HttpOnly cookies so page scripts never see them.
The refresh cookie is scoped to the auth routes, so it is only sent when a
session is being refreshed or closed.
"""

from fastapi import Response

from src.dine.config import settings
from src.dine.services.auth.dependencies import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from src.dine.services.auth.models import AuthResult
from src.dine.services.auth.tokens import TokenService

ACCESS_COOKIE_PATH = "/"


def refresh_cookie_path() -> str:
    return f"{settings.api_prefix}/auth"


def set_session_cookies(response: Response, result: AuthResult, tokens: TokenService) -> None:
    """Attach both tokens; max-age mirrors each token's lifetime."""
    secure = settings.is_production
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=result.access_token,
        max_age=int(tokens.access_ttl.total_seconds()),
        path=ACCESS_COOKIE_PATH,
        httponly=True,
        secure=secure,
        samesite="strict",
    )
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=result.refresh_token,
        max_age=int(tokens.refresh_ttl.total_seconds()),
        path=refresh_cookie_path(),
        httponly=True,
        secure=secure,
        samesite="strict",
    )


def clear_session_cookies(response: Response) -> None:
    """Expire both cookies (paths must match the ones they were set with)."""
    secure = settings.is_production
    response.delete_cookie(
        key=ACCESS_TOKEN_COOKIE,
        path=ACCESS_COOKIE_PATH,
        httponly=True,
        secure=secure,
        samesite="strict",
    )
    response.delete_cookie(
        key=REFRESH_TOKEN_COOKIE,
        path=refresh_cookie_path(),
        httponly=True,
        secure=secure,
        samesite="strict",
    )
