"""Address to coordinates lookup via the Google Geocoding HTTP API."""

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel, Field
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.dine.services.geocoding.exceptions import (
    GeocodeFailedError,
    GeocodeInvalidInputError,
    GeocodeProviderConfigError,
)

logger = logging.getLogger(__name__)


class Coordinates(BaseModel):
    """A resolved location."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Geocoder(Protocol):
    """Anything that can turn a postal address into coordinates."""

    async def geocode(self, address: str, city: str, pin_code: str) -> Coordinates: ...


class GeocodingClient:
    """
    Geocodes postal addresses through the Google Geocoding API.

    Transport errors (timeouts, connection resets) are retried with
    exponential backoff. Provider-reported failures are not retried: a
    ZERO_RESULTS answer will not change on a second attempt.

    Attributes:
        api_key: Google Maps API key (empty means unconfigured)
        base_url: Geocoding endpoint URL
        _http_client: HTTP client for provider requests

    Example:
        >>> geocoder = GeocodingClient(api_key="...")
        >>> coords = await geocoder.geocode("221B Baker Street", "London", "10001")
        >>> coords.latitude, coords.longitude
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api/geocode/json",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize geocoding client.

        Args:
            api_key: Provider API key
            base_url: Geocoding endpoint
            timeout: Request timeout in seconds
            http_client: Optional preconfigured client (tests inject a MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url
        self._http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def geocode(self, address: str, city: str, pin_code: str) -> Coordinates:
        """
        Resolve an address to coordinates.

        Args:
            address: Street address
            city: City name
            pin_code: Postal code

        Returns:
            Coordinates of the first provider result

        Raises:
            GeocodeInvalidInputError: If any field is empty
            GeocodeProviderConfigError: If no API key is configured
            GeocodeFailedError: If the provider reports failure or returns no results
        """
        if not (address or "").strip() or not (city or "").strip() or not (pin_code or "").strip():
            logger.error(
                "Invalid geocoding inputs",
                extra={"address": address, "city": city, "pin_code": pin_code},
            )
            raise GeocodeInvalidInputError()

        if not self.api_key:
            logger.error("Geocoding API key is missing")
            raise GeocodeProviderConfigError()

        full_address = f"{address.strip()}, {city.strip()}, {pin_code.strip()}"
        logger.debug("Geocoding address", extra={"full_address": full_address})

        try:
            data = await self._request(full_address)
        except httpx.HTTPError as e:
            logger.error(
                f"Geocoding request failed: {e}",
                exc_info=True,
                extra={"full_address": full_address},
            )
            raise GeocodeFailedError(str(e) or type(e).__name__) from e

        status = data.get("status")
        if status != "OK":
            error_message = data.get("error_message") or "Unknown error"
            logger.error(
                "Geocoding provider error",
                extra={"status": status, "error_message": error_message, "full_address": full_address},
            )
            raise GeocodeFailedError(f"{status} - {error_message}")

        results = data.get("results") or []
        location = results[0].get("geometry", {}).get("location") if results else None
        if not location:
            logger.error("No geocoding results found", extra={"full_address": full_address})
            raise GeocodeFailedError("No results found")

        coordinates = Coordinates(latitude=location["lat"], longitude=location["lng"])
        logger.info(
            "Geocoding successful",
            extra={
                "full_address": full_address,
                "latitude": coordinates.latitude,
                "longitude": coordinates.longitude,
            },
        )
        return coordinates

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _request(self, full_address: str) -> dict:
        """
        Call the provider with automatic retry on transport errors.

        Returns:
            Decoded JSON body

        Raises:
            httpx.HTTPError: After max retries, or on a non-2xx response
        """
        response = await self._http_client.get(
            self.base_url, params={"address": full_address, "key": self.api_key}
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()
