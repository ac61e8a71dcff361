"""Per-client request limits for the form endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from earnhub.settings import Settings

SIGNUP_LIMIT = "5/minute"
LOGIN_LIMIT = "10/minute"
CLAIM_LIMIT = "20/minute"
WITHDRAW_LIMIT = "10/minute"

# Routes opt in with @limiter.limit(...); there is no global default.
limiter = Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=False)


def configure_limiter(settings: Settings) -> Limiter:
    """Enable limits in production only and start from empty counters."""
    limiter.enabled = settings.is_production
    limiter.reset()
    return limiter
