"""Explicit service graph, composed once at process start."""

import logging
from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request
from supabase import Client

from src.dine.config import Settings
from src.dine.features.restaurants.service import RestaurantService
from src.dine.services.analytics.posthog import PostHogService
from src.dine.services.auth.passwords import PasswordHasher
from src.dine.services.auth.service import AuthService
from src.dine.services.auth.tokens import TokenService
from src.dine.services.database.connection import get_supabase_client
from src.dine.services.database.repositories import (
    RestaurantRepository,
    SupabaseRestaurantRepository,
    SupabaseUserRepository,
    UserRepository,
)
from src.dine.services.database.utils import get_query_builder
from src.dine.services.geocoding import Geocoder, GeocodingClient
from src.dine.services.storage import MediaStorage, MediaStore, get_storage_helper

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Every long-lived collaborator a request handler may need.

    Attached to ``app.state.services``. Tests build one from in-memory fakes
    and pass it to ``create_app``.
    """

    users: UserRepository
    restaurant_repository: RestaurantRepository
    tokens: TokenService
    passwords: PasswordHasher
    geocoder: Geocoder
    media: MediaStorage
    analytics: PostHogService
    auth: AuthService
    restaurants: RestaurantService

    @classmethod
    def compose(
        cls,
        *,
        users: UserRepository,
        restaurant_repository: RestaurantRepository,
        tokens: TokenService,
        passwords: PasswordHasher,
        geocoder: Geocoder,
        media: MediaStorage,
        analytics: PostHogService | None = None,
    ) -> "ServiceContainer":
        """Wire the workflow services on top of the given adapters."""
        return cls(
            users=users,
            restaurant_repository=restaurant_repository,
            tokens=tokens,
            passwords=passwords,
            geocoder=geocoder,
            media=media,
            analytics=analytics or PostHogService(),
            auth=AuthService(users, tokens, passwords),
            restaurants=RestaurantService(restaurant_repository, geocoder, media),
        )

    async def close(self) -> None:
        """Release network resources held by adapters."""
        close = getattr(self.geocoder, "close", None)
        if close is not None:
            await close()


def build_services(settings: Settings, client: Client | None = None) -> ServiceContainer:
    """
    Build the production service graph from settings.

    Raises:
        AuthConfigError: If token secrets are missing or TTLs are inconsistent
    """
    client = client or get_supabase_client()
    db = get_query_builder(client)

    tokens = TokenService(
        access_secret=settings.jwt_access_secret,
        refresh_secret=settings.jwt_refresh_secret,
        access_ttl=timedelta(minutes=settings.access_token_ttl_minutes),
        refresh_ttl=timedelta(days=settings.refresh_token_ttl_days),
        algorithm=settings.jwt_algorithm,
    )

    if not settings.google_maps_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY not set; geocoding requests will fail")

    container = ServiceContainer.compose(
        users=SupabaseUserRepository(db),
        restaurant_repository=SupabaseRestaurantRepository(db),
        tokens=tokens,
        passwords=PasswordHasher(rounds=settings.password_hash_rounds),
        geocoder=GeocodingClient(
            api_key=settings.google_maps_api_key,
            base_url=settings.geocoding_base_url,
            timeout=settings.geocoding_timeout_seconds,
        ),
        media=MediaStore(
            get_storage_helper(client),
            bucket=settings.storage_bucket,
            signed_url_ttl=settings.signed_url_ttl_seconds,
            max_dimension=settings.image_max_dimension,
            jpeg_quality=settings.image_jpeg_quality,
        ),
        analytics=PostHogService(api_key=settings.posthog_api_key, host=settings.posthog_host),
    )
    logger.info("Service graph built", extra={"environment": settings.environment})
    return container


def get_services(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the application's service graph."""
    return request.app.state.services
