"""Custom exceptions for image storage."""

from src.dine.exceptions import DependencyError


class StorageError(DependencyError):
    """Base exception for all storage errors."""

    default_message = "Storage operation failed"


class StorageWriteFailedError(StorageError):
    """Raised when an image cannot be normalized or uploaded."""

    default_message = "Failed to upload image"


class StorageReadFailedError(StorageError):
    """Raised when a signed URL cannot be produced."""

    default_message = "Failed to generate signed URL"


class StorageDeleteFailedError(StorageError):
    """Raised when an object cannot be removed."""

    default_message = "Failed to delete image"


class InvalidImageReferenceError(StorageError):
    """Raised when a client-echoed signed URL does not resolve to a storage key."""

    status_code = 400
    default_message = "Invalid image reference"
