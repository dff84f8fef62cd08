"""Restaurant write-path and read-path workflow."""

import asyncio
import logging
import math
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from src.dine.features.restaurants.exceptions import (
    MIN_RESTAURANT_IMAGES,
    ImageReferenceError,
    InsufficientImagesError,
    NotRestaurantOwnerError,
    RestaurantNotFoundError,
)
from src.dine.features.restaurants.schemas import RestaurantInput, RestaurantUpdate
from src.dine.services.database.models import Restaurant
from src.dine.services.database.repositories import RestaurantRepository
from src.dine.services.geocoding import Coordinates, Geocoder
from src.dine.services.storage import MediaStorage

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("address", "city", "pin_code")


class RestaurantPage(BaseModel):
    """A page of restaurants (images already signed) with pagination metadata."""

    restaurants: list[Restaurant]
    page: int
    limit: int
    total: int
    total_pages: int


class RestaurantService:
    """
    Orchestrates restaurant create/update/delete over four independent effects:
    geocoding, image storage, ownership checks, and repository writes.

    None of these are transactional. The service orders them so that
    validation happens before any side effect, uploads are rolled back when a
    later step fails, and image deletions happen only once no record points at
    the deleted keys. Deletions are best-effort: failures are logged with the
    orphaned key and never fail the request.
    """

    def __init__(
        self,
        restaurants: RestaurantRepository,
        geocoder: Geocoder,
        media: MediaStorage,
    ) -> None:
        self.restaurants = restaurants
        self.geocoder = geocoder
        self.media = media

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    async def get(self, restaurant_id: str) -> Restaurant:
        """
        Fetch one restaurant with signed image URLs.

        Raises:
            RestaurantNotFoundError: If the id does not resolve
        """
        record = await self.restaurants.get(restaurant_id)
        if record is None:
            raise RestaurantNotFoundError()
        return await self._with_signed_urls(record)

    async def list_public(self, page: int, limit: int, search: str | None = None) -> RestaurantPage:
        """All owners' restaurants, newest first."""
        return await self._list(page, limit, search, owner_id=None)

    async def list_for_owner(
        self, owner_id: str, page: int, limit: int, search: str | None = None
    ) -> RestaurantPage:
        """Restaurants owned by owner_id, newest first."""
        return await self._list(page, limit, search, owner_id=owner_id)

    # ------------------------------------------------------------------
    # Write paths
    # ------------------------------------------------------------------

    async def create(
        self, owner_id: str, fields: RestaurantInput, images: list[bytes]
    ) -> Restaurant:
        """
        Create a restaurant owned by owner_id.

        Args:
            owner_id: Authenticated user id
            fields: Validated restaurant fields
            images: Raw image uploads (at least 3)

        Returns:
            The stored restaurant with signed image URLs

        Raises:
            InsufficientImagesError: If fewer than 3 images are supplied
            GeocodingError: If coordinates are not supplied and the address cannot be geocoded
            StorageError: If an image cannot be stored (successful uploads are rolled back)
        """
        if len(images) < MIN_RESTAURANT_IMAGES:
            raise InsufficientImagesError()

        coordinates = await self._coordinates_for_create(fields)
        keys = await self._store_images(owner_id, images)

        now = datetime.now(UTC)
        data = fields.model_dump(exclude={"latitude", "longitude"})
        data.update(
            latitude=coordinates.latitude,
            longitude=coordinates.longitude,
            images=keys,
            user_id=owner_id,
            created_at=now,
            updated_at=now,
        )

        try:
            record = await self.restaurants.create(data)
        except Exception:
            await self._discard_images(keys, reason="create_failed")
            raise

        logger.info(
            f"Restaurant created: {record.id}",
            extra={"restaurant_id": record.id, "user_id": owner_id, "images": len(keys)},
        )
        return await self._with_signed_urls(record)

    async def update(
        self,
        restaurant_id: str,
        owner_id: str,
        fields: RestaurantUpdate,
        new_images: list[bytes] | None = None,
        images_to_keep: list[str] | None = None,
        images_to_remove: list[str] | None = None,
    ) -> Restaurant:
        """
        Apply a partial update.

        Image set resolution:
        - images_to_keep given: exactly those existing images stay, the rest are removed
        - only images_to_remove given: everything except those stays
        - neither: existing images stay
        New uploads are appended in every case.

        Args:
            restaurant_id: Restaurant to update
            owner_id: Authenticated user id (must own the restaurant)
            fields: Fields explicitly set by the caller
            new_images: Raw image uploads to add
            images_to_keep: Signed URLs (or keys) of existing images to keep
            images_to_remove: Signed URLs (or keys) of existing images to remove

        Returns:
            The updated restaurant with signed image URLs

        Raises:
            RestaurantNotFoundError: If the id does not resolve
            NotRestaurantOwnerError: If owner_id does not own the restaurant
            ImageReferenceError: If a kept/removed image is not part of the restaurant
            InsufficientImagesError: If fewer than 3 images would remain
        """
        existing = await self._get_owned(restaurant_id, owner_id)
        new_images = new_images or []

        changes = fields.model_dump(exclude_unset=True)
        latitude = changes.pop("latitude", None)
        longitude = changes.pop("longitude", None)

        kept, removed = self._resolve_image_changes(
            existing.images, images_to_keep, images_to_remove
        )
        if len(kept) + len(new_images) < MIN_RESTAURANT_IMAGES:
            raise InsufficientImagesError()

        coordinates = await self._coordinates_for_update(existing, changes, latitude, longitude)

        new_keys = await self._store_images(owner_id, new_images) if new_images else []

        data: dict[str, Any] = {**changes, "images": kept + new_keys, "updated_at": datetime.now(UTC)}
        if coordinates is not None:
            data["latitude"] = coordinates.latitude
            data["longitude"] = coordinates.longitude

        try:
            updated = await self.restaurants.update(restaurant_id, data)
        except Exception:
            await self._discard_images(new_keys, reason="update_failed")
            raise
        if updated is None:
            # Deleted between fetch and write.
            await self._discard_images(new_keys, reason="update_target_missing")
            raise RestaurantNotFoundError()

        await self._discard_images(removed, reason="removed_on_update")

        logger.info(
            f"Restaurant updated: {restaurant_id}",
            extra={
                "restaurant_id": restaurant_id,
                "user_id": owner_id,
                "fields": sorted(changes),
                "images_added": len(new_keys),
                "images_removed": len(removed),
                "regeocoded": coordinates is not None and latitude is None,
            },
        )
        return await self._with_signed_urls(updated)

    async def delete(self, restaurant_id: str, owner_id: str) -> None:
        """
        Delete a restaurant and, best-effort, its images.

        Raises:
            RestaurantNotFoundError: If the id does not resolve
            NotRestaurantOwnerError: If owner_id does not own the restaurant
        """
        existing = await self._get_owned(restaurant_id, owner_id)

        await self._discard_images(existing.images, reason="restaurant_deleted")

        if not await self.restaurants.delete(restaurant_id):
            raise RestaurantNotFoundError()

        logger.info(
            f"Restaurant deleted: {restaurant_id}",
            extra={"restaurant_id": restaurant_id, "user_id": owner_id},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _list(
        self, page: int, limit: int, search: str | None, owner_id: str | None
    ) -> RestaurantPage:
        result = await self.restaurants.list(page, limit, search=search, owner_id=owner_id)
        restaurants = await asyncio.gather(*(self._with_signed_urls(r) for r in result.items))
        return RestaurantPage(
            restaurants=list(restaurants),
            page=page,
            limit=limit,
            total=result.total,
            total_pages=math.ceil(result.total / limit) if limit else 0,
        )

    async def _get_owned(self, restaurant_id: str, owner_id: str) -> Restaurant:
        record = await self.restaurants.get(restaurant_id)
        if record is None:
            raise RestaurantNotFoundError()
        if record.user_id != owner_id:
            logger.warning(
                "Ownership check failed",
                extra={"restaurant_id": restaurant_id, "user_id": owner_id},
            )
            raise NotRestaurantOwnerError()
        return record

    async def _coordinates_for_create(self, fields: RestaurantInput) -> Coordinates:
        # Client-supplied coordinates (already bounds-checked) take precedence.
        if fields.latitude is not None and fields.longitude is not None:
            return Coordinates(latitude=fields.latitude, longitude=fields.longitude)
        return await self.geocoder.geocode(fields.address, fields.city, fields.pin_code)

    async def _coordinates_for_update(
        self,
        existing: Restaurant,
        changes: dict[str, Any],
        latitude: float | None,
        longitude: float | None,
    ) -> Coordinates | None:
        if latitude is not None and longitude is not None:
            return Coordinates(latitude=latitude, longitude=longitude)

        address_changed = any(
            field in changes and changes[field] != getattr(existing, field)
            for field in ADDRESS_FIELDS
        )
        if not address_changed:
            return None

        return await self.geocoder.geocode(
            changes.get("address", existing.address),
            changes.get("city", existing.city),
            changes.get("pin_code", existing.pin_code),
        )

    def _resolve_image_changes(
        self,
        existing: list[str],
        images_to_keep: list[str] | None,
        images_to_remove: list[str] | None,
    ) -> tuple[list[str], list[str]]:
        """Return (kept keys, removed keys) without touching storage."""
        existing_keys = set(existing)

        def to_key(reference: str) -> str:
            if reference in existing_keys:
                return reference
            return self.media.key_from_signed_url(reference)

        keep_keys = [to_key(ref) for ref in images_to_keep] if images_to_keep is not None else None
        remove_keys = [to_key(ref) for ref in images_to_remove or []]

        foreign = [key for key in (keep_keys or []) + remove_keys if key not in existing_keys]
        if foreign:
            raise ImageReferenceError(
                issues=[{"field": "images", "message": f"Unknown image: {key}"} for key in foreign]
            )

        if keep_keys is not None:
            if set(keep_keys) & set(remove_keys):
                raise ImageReferenceError("An image cannot be both kept and removed")
            kept = list(dict.fromkeys(keep_keys))
        else:
            remove_set = set(remove_keys)
            kept = [key for key in existing if key not in remove_set]

        kept_set = set(kept)
        removed = [key for key in existing if key not in kept_set]
        return kept, removed

    async def _store_images(self, owner_id: str, images: list[bytes]) -> list[str]:
        keys = [self.media.build_key(owner_id, index) for index in range(len(images))]
        results = await asyncio.gather(
            *(self.media.store(data, key) for data, key in zip(images, keys)),
            return_exceptions=True,
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            stored = [key for key, result in zip(keys, results) if result is None]
            logger.error(
                f"{len(failures)} of {len(keys)} image uploads failed; rolling back",
                extra={"user_id": owner_id, "stored": stored},
            )
            await self._discard_images(stored, reason="upload_rollback")
            raise failures[0]
        return keys

    async def _discard_images(self, keys: list[str], reason: str) -> None:
        if not keys:
            return
        results = await asyncio.gather(
            *(self.media.delete(key) for key in keys), return_exceptions=True
        )
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Orphaned image key {key}: {result}",
                    extra={"orphaned_key": key, "reason": reason},
                )

    async def _with_signed_urls(self, record: Restaurant) -> Restaurant:
        urls = await asyncio.gather(*(self.media.sign(key) for key in record.images))
        return record.model_copy(update={"images": list(urls)})
