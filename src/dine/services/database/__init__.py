"""Database connection, models, and repositories."""

from src.dine.services.database.connection import get_supabase_client
from src.dine.services.database.utils import SupabaseQueryBuilder, get_query_builder

__all__ = [
    "get_supabase_client",
    "SupabaseQueryBuilder",
    "get_query_builder",
]
