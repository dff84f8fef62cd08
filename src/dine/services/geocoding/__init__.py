"""Geocoding module: postal address to coordinates."""

from src.dine.services.geocoding.client import Coordinates, Geocoder, GeocodingClient
from src.dine.services.geocoding.exceptions import (
    GeocodeFailedError,
    GeocodeInvalidInputError,
    GeocodeProviderConfigError,
    GeocodingError,
)

__all__ = [
    "Coordinates",
    "Geocoder",
    "GeocodingClient",
    "GeocodingError",
    "GeocodeFailedError",
    "GeocodeInvalidInputError",
    "GeocodeProviderConfigError",
]
