"""Tests for storage utility functions."""

from unittest.mock import MagicMock

import pytest

from src.dine.services.storage.utils import SupabaseStorageHelper, get_storage_helper


@pytest.fixture
def mock_client() -> MagicMock:
    """Mock Supabase client."""
    return MagicMock()


class TestSupabaseStorageHelper:
    """Tests for SupabaseStorageHelper class."""

    def test_upload_file(self, mock_client: MagicMock) -> None:
        """Test uploading file to storage without overwriting."""
        helper = SupabaseStorageHelper(mock_client)
        helper.upload_file("restaurant-images", "restaurants/u/1_0.jpg", b"jpeg", "image/jpeg")

        mock_client.storage.from_.assert_called_with("restaurant-images")
        mock_client.storage.from_().upload.assert_called_once_with(
            path="restaurants/u/1_0.jpg",
            file=b"jpeg",
            file_options={"upsert": "false", "content-type": "image/jpeg"},
        )

    def test_upload_file_error_propagates(self, mock_client: MagicMock) -> None:
        """Test that provider errors are raised to the caller."""
        mock_client.storage.from_().upload.side_effect = Exception("Storage error")

        helper = SupabaseStorageHelper(mock_client)

        with pytest.raises(Exception, match="Storage error"):
            helper.upload_file("restaurant-images", "restaurants/u/1_0.jpg", b"jpeg")

    def test_delete_file(self, mock_client: MagicMock) -> None:
        """Test deleting a file."""
        helper = SupabaseStorageHelper(mock_client)
        helper.delete_file("restaurant-images", "restaurants/u/1_0.jpg")

        mock_client.storage.from_().remove.assert_called_once_with(["restaurants/u/1_0.jpg"])

    def test_create_signed_url(self, mock_client: MagicMock) -> None:
        """Test creating signed URL."""
        mock_client.storage.from_().create_signed_url.return_value = {
            "signedURL": "https://x.supabase.co/storage/v1/object/sign/restaurant-images/k?token=t"
        }

        helper = SupabaseStorageHelper(mock_client)
        url = helper.create_signed_url("restaurant-images", "k", expires_in_seconds=3600)

        assert url.endswith("/sign/restaurant-images/k?token=t")
        mock_client.storage.from_().create_signed_url.assert_called_once_with("k", 3600)

    def test_create_signed_url_camel_case_key(self, mock_client: MagicMock) -> None:
        """Test that newer client responses (signedUrl) are accepted."""
        mock_client.storage.from_().create_signed_url.return_value = {"signedUrl": "https://u"}

        helper = SupabaseStorageHelper(mock_client)

        assert helper.create_signed_url("restaurant-images", "k") == "https://u"


def test_get_storage_helper(mock_client: MagicMock) -> None:
    """Test getting storage helper instance."""
    helper = get_storage_helper(mock_client)

    assert isinstance(helper, SupabaseStorageHelper)
    assert helper.client is mock_client
