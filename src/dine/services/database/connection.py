"""Shared Supabase client."""

from functools import lru_cache

from supabase import Client, create_client

from src.dine.config import settings


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Process-wide Supabase client authenticated with the service-role key.

    Row-Level Security is bypassed: authentication and ownership are enforced
    in the API layer. Tables and the image bucket share this one client.
    """
    return create_client(settings.supabase_url, settings.supabase_service_role_key)
