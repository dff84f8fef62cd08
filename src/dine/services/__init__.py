"""Shared services: auth, persistence, geocoding, storage, analytics."""

from src.dine.services.analytics.posthog import PostHogService

__all__ = [
    "PostHogService",
]
