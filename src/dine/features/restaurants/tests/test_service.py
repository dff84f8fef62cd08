"""Tests for the restaurant workflow."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio

from src.dine.features.restaurants.exceptions import (
    ImageReferenceError,
    InsufficientImagesError,
    NotRestaurantOwnerError,
    RestaurantNotFoundError,
)
from src.dine.features.restaurants.schemas import RestaurantInput, RestaurantUpdate
from src.dine.features.restaurants.service import RestaurantService
from src.dine.services.geocoding import Coordinates, GeocodeFailedError
from src.dine.services.storage.exceptions import StorageWriteFailedError

IMAGES = [b"img-0", b"img-1", b"img-2"]


@pytest.fixture
def service(restaurant_repository, geocoder, media_store) -> RestaurantService:
    """RestaurantService over in-memory fakes."""
    return RestaurantService(restaurant_repository, geocoder, media_store)


@pytest.fixture
def owner_id() -> str:
    return str(uuid4())


@pytest.fixture
def fields(restaurant_fields) -> RestaurantInput:
    return RestaurantInput(**restaurant_fields)


@pytest_asyncio.fixture
async def created(service, owner_id, fields):
    """A restaurant with three images, as returned by create (signed URLs)."""
    return await service.create(owner_id, fields, list(IMAGES))


@pytest.mark.asyncio
class TestCreate:
    """Tests for RestaurantService.create."""

    async def test_create_then_get_round_trip(self, service, owner_id, fields):
        """Test that a created restaurant reads back with the same fields."""
        created = await service.create(owner_id, fields, list(IMAGES))

        fetched = await service.get(created.id)

        for name, value in fields.model_dump(exclude={"latitude", "longitude"}).items():
            assert getattr(fetched, name) == value
        assert fetched.user_id == owner_id
        assert len(fetched.images) == 3

    async def test_images_returned_as_signed_urls_but_stored_as_keys(
        self, service, owner_id, fields, restaurant_repository
    ):
        """Test that records hold keys while callers see signed URLs."""
        created = await service.create(owner_id, fields, list(IMAGES))

        stored = restaurant_repository.rows[created.id]
        assert all(key.startswith(f"restaurants/{owner_id}/") for key in stored.images)
        assert all(url.startswith("https://") and "token=" in url for url in created.images)

    async def test_address_geocoded_when_no_coordinates(self, service, owner_id, fields, geocoder):
        """Test that the server geocodes when the client sends no coordinates."""
        created = await service.create(owner_id, fields, list(IMAGES))

        geocoder.geocode.assert_awaited_once_with(fields.address, fields.city, fields.pin_code)
        assert (created.latitude, created.longitude) == (12.9716, 77.5946)

    async def test_client_coordinates_take_precedence(
        self, service, owner_id, restaurant_fields, geocoder
    ):
        """Test that client-supplied coordinates skip geocoding."""
        fields = RestaurantInput(**restaurant_fields, latitude=19.07, longitude=72.87)

        created = await service.create(owner_id, fields, list(IMAGES))

        geocoder.geocode.assert_not_awaited()
        assert (created.latitude, created.longitude) == (19.07, 72.87)

    async def test_fewer_than_three_images_has_no_side_effects(
        self, service, owner_id, fields, geocoder, media_store, restaurant_repository
    ):
        """Test that the image floor is checked before anything else."""
        with pytest.raises(InsufficientImagesError):
            await service.create(owner_id, fields, [b"a", b"b"])

        geocoder.geocode.assert_not_awaited()
        assert media_store.stored == []
        assert restaurant_repository.rows == {}

    async def test_geocoding_failure_stores_nothing(
        self, service, owner_id, fields, geocoder, media_store
    ):
        """Test that a geocoding failure happens before any upload."""
        geocoder.geocode.side_effect = GeocodeFailedError("ZERO_RESULTS - Unknown error")

        with pytest.raises(GeocodeFailedError):
            await service.create(owner_id, fields, list(IMAGES))

        assert media_store.stored == []

    async def test_partial_upload_failure_rolls_back(
        self, service, owner_id, fields, media_store, restaurant_repository
    ):
        """Test that successfully uploaded images are removed when one upload fails."""
        media_store.fail_store_on = {1}

        with pytest.raises(StorageWriteFailedError):
            await service.create(owner_id, fields, list(IMAGES))

        assert len(media_store.stored) == 2
        assert sorted(media_store.deleted) == sorted(media_store.stored)
        assert media_store.objects == {}
        assert restaurant_repository.rows == {}

    async def test_repository_failure_rolls_back_uploads(
        self, geocoder, media_store, owner_id, fields
    ):
        """Test that uploads are removed when the record cannot be written."""
        repository = AsyncMock()
        repository.create.side_effect = RuntimeError("database down")
        service = RestaurantService(repository, geocoder, media_store)

        with pytest.raises(RuntimeError):
            await service.create(owner_id, fields, list(IMAGES))

        assert media_store.objects == {}
        assert len(media_store.deleted) == 3


@pytest.mark.asyncio
class TestUpdate:
    """Tests for RestaurantService.update."""

    async def test_description_only_update(self, service, owner_id, created, geocoder, media_store):
        """Test that changing only the description needs no geocode and no images."""
        geocoder.geocode.reset_mock()

        updated = await service.update(
            created.id, owner_id, RestaurantUpdate(description="Now with gelato")
        )

        assert updated.description == "Now with gelato"
        assert updated.name == created.name
        assert updated.images == created.images
        geocoder.geocode.assert_not_awaited()
        assert media_store.deleted == []

    async def test_description_can_be_cleared(self, service, owner_id, created):
        """Test that an explicit null clears an optional field."""
        updated = await service.update(created.id, owner_id, RestaurantUpdate(description=None))

        assert updated.description is None

    async def test_address_change_regeocodes(self, service, owner_id, created, geocoder):
        """Test that a changed address is geocoded with the merged address."""
        geocoder.geocode.reset_mock()
        geocoder.geocode.return_value = Coordinates(latitude=13.0, longitude=77.6)

        updated = await service.update(
            created.id, owner_id, RestaurantUpdate(address="99 Brigade Road")
        )

        geocoder.geocode.assert_awaited_once_with("99 Brigade Road", created.city, created.pin_code)
        assert (updated.latitude, updated.longitude) == (13.0, 77.6)

    async def test_unchanged_address_does_not_regeocode(self, service, owner_id, created, geocoder):
        """Test that resubmitting the same address is not a change."""
        geocoder.geocode.reset_mock()

        await service.update(created.id, owner_id, RestaurantUpdate(city=created.city))

        geocoder.geocode.assert_not_awaited()

    async def test_client_coordinates_on_update(self, service, owner_id, created, geocoder):
        """Test that coordinates supplied with an address change are used as-is."""
        geocoder.geocode.reset_mock()

        updated = await service.update(
            created.id,
            owner_id,
            RestaurantUpdate(address="99 Brigade Road", latitude=10.0, longitude=20.0),
        )

        geocoder.geocode.assert_not_awaited()
        assert (updated.latitude, updated.longitude) == (10.0, 20.0)

    async def test_non_owner_forbidden(self, service, created):
        """Test that another user cannot update the restaurant."""
        with pytest.raises(NotRestaurantOwnerError) as exc_info:
            await service.update(created.id, str(uuid4()), RestaurantUpdate(name="Hijacked"))

        assert exc_info.value.status_code == 403

    async def test_missing_restaurant(self, service, owner_id):
        """Test that an unknown id is a 404."""
        with pytest.raises(RestaurantNotFoundError):
            await service.update(str(uuid4()), owner_id, RestaurantUpdate(name="Nope"))

    async def test_add_images_appends(self, service, owner_id, created, media_store):
        """Test that new uploads are added to the existing set."""
        updated = await service.update(
            created.id, owner_id, RestaurantUpdate(), new_images=[b"img-3"]
        )

        assert len(updated.images) == 4
        assert updated.images[:3] == created.images

    async def test_keep_list_removes_everything_else(
        self, service, owner_id, created, media_store, restaurant_repository
    ):
        """Test that images not listed in images_to_keep are deleted."""
        updated = await service.update(
            created.id,
            owner_id,
            RestaurantUpdate(),
            new_images=[b"img-3"],
            images_to_keep=created.images[:2],
        )

        dropped_key = media_store.key_from_signed_url(created.images[2])
        assert media_store.deleted == [dropped_key]
        assert dropped_key not in restaurant_repository.rows[created.id].images
        assert len(updated.images) == 3

    async def test_remove_list(self, service, owner_id, created, media_store):
        """Test removing one image while adding another."""
        updated = await service.update(
            created.id,
            owner_id,
            RestaurantUpdate(),
            new_images=[b"img-3"],
            images_to_remove=[created.images[0]],
        )

        assert created.images[0] not in updated.images
        assert media_store.deleted == [media_store.key_from_signed_url(created.images[0])]

    async def test_update_below_image_floor_has_no_side_effects(
        self, service, owner_id, created, media_store, restaurant_repository
    ):
        """Test that an update leaving fewer than three images is rejected up front."""
        before = restaurant_repository.rows[created.id]
        stored_before = list(media_store.stored)

        with pytest.raises(InsufficientImagesError):
            await service.update(
                created.id,
                owner_id,
                RestaurantUpdate(name="Renamed"),
                images_to_remove=[created.images[0]],
            )

        assert media_store.deleted == []
        assert media_store.stored == stored_before
        assert restaurant_repository.rows[created.id] == before

    async def test_foreign_image_reference_rejected(self, service, owner_id, created, media_store):
        """Test that images from another restaurant cannot be kept or removed."""
        foreign = await media_store.sign("restaurants/someone-else/1_0.jpg")

        with pytest.raises(ImageReferenceError):
            await service.update(
                created.id, owner_id, RestaurantUpdate(), images_to_remove=[foreign]
            )

        assert media_store.deleted == []

    async def test_image_both_kept_and_removed_rejected(self, service, owner_id, created):
        """Test that contradictory image instructions are rejected."""
        with pytest.raises(ImageReferenceError):
            await service.update(
                created.id,
                owner_id,
                RestaurantUpdate(),
                images_to_keep=created.images,
                images_to_remove=[created.images[0]],
            )

    async def test_failed_delete_of_removed_image_does_not_fail_update(
        self, service, owner_id, created, media_store
    ):
        """Test that image cleanup is best-effort."""
        media_store.fail_delete_on = {media_store.key_from_signed_url(created.images[0])}

        updated = await service.update(
            created.id,
            owner_id,
            RestaurantUpdate(),
            new_images=[b"img-3"],
            images_to_remove=[created.images[0]],
        )

        assert len(updated.images) == 3


@pytest.mark.asyncio
class TestDelete:
    """Tests for RestaurantService.delete."""

    async def test_delete_removes_record_and_images(
        self, service, owner_id, created, media_store, restaurant_repository
    ):
        """Test that deletion removes the record and its stored images."""
        await service.delete(created.id, owner_id)

        assert created.id not in restaurant_repository.rows
        assert media_store.objects == {}

        with pytest.raises(RestaurantNotFoundError):
            await service.get(created.id)

    async def test_non_owner_forbidden(self, service, created, restaurant_repository):
        """Test that another user cannot delete the restaurant."""
        with pytest.raises(NotRestaurantOwnerError):
            await service.delete(created.id, str(uuid4()))

        assert created.id in restaurant_repository.rows

    async def test_image_cleanup_failure_is_swallowed(
        self, service, owner_id, created, media_store, restaurant_repository
    ):
        """Test that the record is gone even if an image cannot be removed."""
        media_store.fail_delete_on = {media_store.key_from_signed_url(created.images[1])}

        await service.delete(created.id, owner_id)

        assert created.id not in restaurant_repository.rows


@pytest.mark.asyncio
class TestList:
    """Tests for list_public and list_for_owner."""

    async def test_pagination(self, service, owner_id, fields):
        """Test that 25 restaurants yield 10 on page 2 and three pages in total."""
        for _ in range(25):
            await service.create(owner_id, fields, list(IMAGES))

        page = await service.list_public(page=2, limit=10)

        assert len(page.restaurants) == 10
        assert page.total == 25
        assert page.total_pages == 3

    async def test_newest_first(self, service, owner_id, restaurant_fields):
        """Test ordering by creation time, newest first."""
        for name in ("First Place", "Second Place", "Third Place"):
            await service.create(
                owner_id, RestaurantInput(**{**restaurant_fields, "name": name}), list(IMAGES)
            )

        page = await service.list_public(page=1, limit=10)

        assert [r.name for r in page.restaurants] == ["Third Place", "Second Place", "First Place"]

    async def test_search(self, service, owner_id, restaurant_fields):
        """Test case-insensitive search across name, city, and categories."""
        await service.create(owner_id, RestaurantInput(**restaurant_fields), list(IMAGES))
        await service.create(
            owner_id,
            RestaurantInput(
                **{**restaurant_fields, "name": "Dosa Corner", "categories": ["South Indian"]}
            ),
            list(IMAGES),
        )

        by_category = await service.list_public(page=1, limit=10, search="south")
        by_name = await service.list_public(page=1, limit=10, search="TRATTORIA")

        assert [r.name for r in by_category.restaurants] == ["Dosa Corner"]
        assert [r.name for r in by_name.restaurants] == ["Trattoria Roma"]

    async def test_list_for_owner(self, service, owner_id, fields):
        """Test that the owner listing excludes other users' restaurants."""
        await service.create(owner_id, fields, list(IMAGES))
        await service.create(str(uuid4()), fields, list(IMAGES))

        mine = await service.list_for_owner(owner_id, page=1, limit=10)

        assert mine.total == 1
        assert mine.restaurants[0].user_id == owner_id

    async def test_empty_page(self, service):
        """Test that an empty directory has zero pages."""
        page = await service.list_public(page=1, limit=10)

        assert page.restaurants == []
        assert page.total_pages == 0
