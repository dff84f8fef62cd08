"""PostHog analytics service for event tracking."""

import logging

import posthog

logger = logging.getLogger(__name__)


class PostHogService:
    """Service for tracking analytics events via PostHog.

    Without an API key every call is a no-op, so local runs and tests never
    reach the network.
    """

    def __init__(self, api_key: str | None = None, host: str = "https://app.posthog.com") -> None:
        """Initialize PostHog service."""
        self.enabled = bool(api_key)
        if self.enabled:
            posthog.api_key = api_key
            posthog.host = host

    def capture(self, distinct_id: str, event: str, properties: dict | None = None) -> None:
        """
        Track an event.

        Args:
            distinct_id: Unique identifier for the user
            event: Event name (e.g., "user_registered", "authentication_failed")
            properties: Optional event properties

        Example:
            >>> service = PostHogService(api_key="phc_...")
            >>> service.capture("user-123", "user_logged_in")
        """
        if not self.enabled:
            return

        try:
            posthog.capture(distinct_id=distinct_id, event=event, properties=properties or {})
        except Exception as e:
            logger.warning(f"PostHog capture failed for {event}: {e}")
