"""API handlers for auth endpoints."""

import logging

from fastapi import APIRouter, Cookie, Depends, Request, Response, status

from src.dine.features.auth.cookies import clear_session_cookies, set_session_cookies
from src.dine.features.auth.schemas import AuthRequest, AuthResponse, MeResponse, MessageResponse
from src.dine.services.auth.dependencies import REFRESH_TOKEN_COOKIE, get_current_user
from src.dine.services.auth.models import AuthenticatedUser
from src.dine.services.container import ServiceContainer, get_services
from src.dine.services.rate_limiter import auth_rate_limit, default_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@auth_rate_limit
async def register(
    request: Request,
    response: Response,
    body: AuthRequest,
    services: ServiceContainer = Depends(get_services),
) -> AuthResponse:
    """
    Register a new user and open a session.

    Sets the accessToken and refreshToken cookies.

    Raises:
        DuplicateUserError: 400 if the email is already registered
        RequestValidationError: 400 on a malformed email or a short password

    Example Response:
        {"message": "User registered successfully", "user": {"id": "...", "email": "a@b.co"}}
    """
    result = await services.auth.register(body.email, body.password)
    set_session_cookies(response, result, services.tokens)
    services.analytics.capture(distinct_id=result.user.id, event="user_registered")
    return AuthResponse(message="User registered successfully", user=result.user)


@router.post("/login", response_model=AuthResponse)
@auth_rate_limit
async def login(
    request: Request,
    response: Response,
    body: AuthRequest,
    services: ServiceContainer = Depends(get_services),
) -> AuthResponse:
    """
    Log in with email and password.

    Unknown emails and wrong passwords get the same response.

    Raises:
        InvalidCredentialsError: 401 on bad credentials
    """
    result = await services.auth.login(body.email, body.password)
    set_session_cookies(response, result, services.tokens)
    services.analytics.capture(distinct_id=result.user.id, event="user_logged_in")
    return AuthResponse(message="Logged in successfully", user=result.user)


@router.post("/refresh", response_model=AuthResponse)
@auth_rate_limit
async def refresh(
    request: Request,
    response: Response,
    refresh_token: str | None = Cookie(None, alias=REFRESH_TOKEN_COOKIE),
    services: ServiceContainer = Depends(get_services),
) -> AuthResponse:
    """
    Rotate the session: both cookies are replaced with fresh tokens.

    Raises:
        InvalidCredentialsError: 401 if the refresh cookie is missing, expired, or invalid
    """
    result = await services.auth.refresh(refresh_token)
    set_session_cookies(response, result, services.tokens)
    services.analytics.capture(distinct_id=result.user.id, event="token_refreshed")
    return AuthResponse(message="Token refreshed successfully", user=result.user)


@router.post("/logout", response_model=MessageResponse)
@default_rate_limit
async def logout(
    request: Request,
    response: Response,
    current_user: AuthenticatedUser = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
) -> MessageResponse:
    """
    Clear both session cookies.

    Tokens are stateless, so copies held elsewhere stay valid until they expire.
    """
    await services.auth.logout(current_user.id)
    clear_session_cookies(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
@default_rate_limit
async def me(
    request: Request,
    current_user: AuthenticatedUser = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
) -> MeResponse:
    """Return the user behind the access cookie."""
    user = await services.auth.get_user(current_user.id)
    return MeResponse(user=user)
