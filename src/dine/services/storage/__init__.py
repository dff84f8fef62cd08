"""Storage module for Supabase Storage operations."""

from src.dine.services.storage.media_store import MediaStorage, MediaStore
from src.dine.services.storage.utils import SupabaseStorageHelper, get_storage_helper

__all__ = ["MediaStorage", "MediaStore", "SupabaseStorageHelper", "get_storage_helper"]
