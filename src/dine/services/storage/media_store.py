"""Durable image storage with time-limited retrieval URLs."""

import asyncio
import logging
import secrets
import time
from typing import Protocol
from urllib.parse import unquote, urlparse

from src.dine.services.storage.exceptions import (
    InvalidImageReferenceError,
    StorageDeleteFailedError,
    StorageReadFailedError,
    StorageWriteFailedError,
)
from src.dine.services.storage.images import JPEG_CONTENT_TYPE, ImageDecodeError, normalize_image
from src.dine.services.storage.utils import SupabaseStorageHelper

logger = logging.getLogger(__name__)

SIGNED_URL_PATH_MARKER = "/object/sign/"


class MediaStorage(Protocol):
    """Capability interface the restaurant workflow depends on."""

    def build_key(self, owner_id: str, index: int) -> str: ...

    async def store(self, data: bytes, key: str) -> None: ...

    async def sign(self, key: str) -> str: ...

    async def delete(self, key: str) -> None: ...

    def key_from_signed_url(self, url: str) -> str: ...


class MediaStore:
    """
    Stores normalized restaurant images in a Supabase Storage bucket.

    Records only ever hold storage keys; clients only ever see signed URLs.
    When a client echoes a signed URL back (to keep an image on update),
    key_from_signed_url recovers the key.

    Attributes:
        helper: Supabase storage helper
        bucket: Bucket holding restaurant images
        signed_url_ttl: Signed URL lifetime in seconds (default: 3600)

    Example:
        >>> store = MediaStore(get_storage_helper(), "restaurant-images")
        >>> key = store.build_key(user_id, 0)
        >>> await store.store(upload_bytes, key)
        >>> url = await store.sign(key)
        >>> store.key_from_signed_url(url) == key
        True
    """

    def __init__(
        self,
        helper: SupabaseStorageHelper,
        bucket: str,
        signed_url_ttl: int = 3600,
        max_dimension: int = 800,
        jpeg_quality: int = 80,
    ) -> None:
        self.helper = helper
        self.bucket = bucket
        self.signed_url_ttl = signed_url_ttl
        self.max_dimension = max_dimension
        self.jpeg_quality = jpeg_quality

    def build_key(self, owner_id: str, index: int) -> str:
        """Key namespaced by owner, unique per upload."""
        timestamp_ms = int(time.time() * 1000)
        return f"restaurants/{owner_id}/{timestamp_ms}_{index}_{secrets.token_hex(4)}.jpg"

    async def store(self, data: bytes, key: str) -> None:
        """
        Normalize and upload an image.

        Raises:
            StorageWriteFailedError: If the image is unreadable or the upload fails
        """
        try:
            normalized = await asyncio.to_thread(
                normalize_image, data, self.max_dimension, self.jpeg_quality
            )
        except ImageDecodeError as e:
            logger.warning(f"Rejected undecodable image for {key}: {e}")
            raise StorageWriteFailedError("Uploaded file is not a valid image", status_code=400) from e

        try:
            await asyncio.to_thread(
                self.helper.upload_file, self.bucket, key, normalized, JPEG_CONTENT_TYPE
            )
        except Exception as e:
            logger.error(f"Image upload failed for {key}: {e}", exc_info=True)
            raise StorageWriteFailedError() from e

        logger.debug("Image stored", extra={"key": key, "size": len(normalized)})

    async def sign(self, key: str) -> str:
        """
        Produce a time-limited retrieval URL.

        Raises:
            StorageReadFailedError: If the provider cannot sign the key
        """
        try:
            return await asyncio.to_thread(
                self.helper.create_signed_url, self.bucket, key, self.signed_url_ttl
            )
        except Exception as e:
            logger.error(f"Signing failed for {key}: {e}", exc_info=True)
            raise StorageReadFailedError() from e

    async def delete(self, key: str) -> None:
        """
        Remove an image.

        Raises:
            StorageDeleteFailedError: If the provider rejects the removal
        """
        try:
            await asyncio.to_thread(self.helper.delete_file, self.bucket, key)
        except Exception as e:
            logger.error(f"Delete failed for {key}: {e}", exc_info=True)
            raise StorageDeleteFailedError() from e

    def key_from_signed_url(self, url: str) -> str:
        """
        Recover the storage key from a URL previously produced by sign().

        Signed URLs look like
        ``https://<project>.supabase.co/storage/v1/object/sign/<bucket>/<key>?token=...``.

        Raises:
            InvalidImageReferenceError: If url is not a signed URL for this bucket
        """
        try:
            path = urlparse(url).path
        except ValueError as e:
            raise InvalidImageReferenceError() from e

        _, marker, remainder = path.partition(SIGNED_URL_PATH_MARKER)
        if not marker:
            raise InvalidImageReferenceError()

        bucket, _, key = remainder.partition("/")
        key = unquote(key)
        if unquote(bucket) != self.bucket or not key:
            raise InvalidImageReferenceError()
        return key
