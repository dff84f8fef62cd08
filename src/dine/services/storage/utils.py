"""Blocking Supabase Storage calls for a single bucket object.

Provider errors are not caught here; callers map them to storage errors.
"""

from supabase import Client

from src.dine.services.database.connection import get_supabase_client


class SupabaseStorageHelper:
    """Upload, remove and sign objects through the Supabase storage API."""

    def __init__(self, client: Client | None = None) -> None:
        self.client = client or get_supabase_client()

    def _bucket(self, bucket: str):
        return self.client.storage.from_(bucket)

    def upload_file(
        self,
        bucket: str,
        file_path: str,
        file_content: bytes,
        content_type: str | None = None,
    ) -> None:
        """
        Write file_content at file_path. Existing objects are never overwritten
        (upsert is off), so a key collision surfaces as a provider error.

        Example:
            >>> get_storage_helper().upload_file(
            ...     "restaurant-images", "restaurants/<user>/1700000000000_0_ab12cd34.jpg",
            ...     jpeg_bytes, "image/jpeg",
            ... )
        """
        options = {"upsert": "false"}
        if content_type:
            options["content-type"] = content_type
        self._bucket(bucket).upload(path=file_path, file=file_content, file_options=options)

    def delete_file(self, bucket: str, file_path: str) -> None:
        self._bucket(bucket).remove([file_path])

    def create_signed_url(self, bucket: str, file_path: str, expires_in_seconds: int = 3600) -> str:
        """Time-limited read URL for file_path."""
        response = self._bucket(bucket).create_signed_url(file_path, expires_in_seconds)
        # storage3 has returned both spellings across releases.
        return response.get("signedURL") or response["signedUrl"]


def get_storage_helper(client: Client | None = None) -> SupabaseStorageHelper:
    return SupabaseStorageHelper(client)
