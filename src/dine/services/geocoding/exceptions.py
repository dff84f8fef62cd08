"""Custom exceptions for the geocoding client."""

from src.dine.exceptions import DependencyError


class GeocodingError(DependencyError):
    """Base exception for all geocoding errors."""

    default_message = "Geocoding failed"


class GeocodeInvalidInputError(GeocodingError):
    """Raised when address, city, or pin code is empty."""

    status_code = 400
    default_message = "Address, city, and pin code are required"


class GeocodeProviderConfigError(GeocodingError):
    """Raised when the provider API key is missing."""

    status_code = 500
    default_message = "Server configuration error: Missing geocoding API key"


class GeocodeFailedError(GeocodingError):
    """Raised when the provider cannot resolve the address.

    This reflects unresolvable input rather than a server fault, so it maps
    to 400.
    """

    status_code = 400

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Geocoding failed: {reason}")
