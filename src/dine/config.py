"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    api_prefix: str = "/api"
    debug: bool = False
    environment: str = "development"
    cors_origins: str = "http://localhost:3000"
    rate_limit_enabled: bool = True

    # Supabase Configuration (database + storage)
    supabase_url: str = "https://test.supabase.co"
    supabase_service_role_key: str = "test-service-role-key"
    storage_bucket: str = "restaurant-images"
    signed_url_ttl_seconds: int = 3600  # 1 hour

    # Token Configuration
    jwt_access_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 15
    refresh_token_ttl_days: int = 7
    password_hash_rounds: int = 10  # bcrypt cost factor

    # Geocoding Configuration
    google_maps_api_key: str = ""
    geocoding_base_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    geocoding_timeout_seconds: float = 10.0

    # Image Upload Limits
    max_image_size_bytes: int = 5 * 1024 * 1024  # 5MB
    max_images_per_request: int = 10
    image_max_dimension: int = 800
    image_jpeg_quality: int = 80

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"

    @property
    def is_production(self) -> bool:
        """Whether cookies should be marked Secure."""
        return self.environment.lower() == "production"


settings = Settings()
