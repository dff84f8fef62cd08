"""Per-client request throttling (slowapi)."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.dine.config import settings
from src.dine.services.auth.models import AuthenticatedUser


def rate_limit_key(request: Request) -> str:
    """
    Bucket key for a request: ``user:<id>`` once the access-token dependency
    has put a user on request.state, ``ip:<address>`` otherwise.
    """
    user: AuthenticatedUser | None = getattr(request.state, "user", None)
    if user is not None and user.id:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


# Counters live in process memory; a multi-instance deploy needs a shared storage_uri.
limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)

READ_LIMITS = ("100/minute", "1000/hour")
WRITE_LIMITS = ("30/minute", "200/hour")
# Credential endpoints: tight enough to slow password guessing.
AUTH_LIMITS = ("10/minute", "50/hour")

# Decorated endpoints must accept a `request: Request` argument.
default_rate_limit = limiter.limit(";".join(READ_LIMITS))
write_rate_limit = limiter.limit(";".join(WRITE_LIMITS))
auth_rate_limit = limiter.limit(";".join(AUTH_LIMITS))
