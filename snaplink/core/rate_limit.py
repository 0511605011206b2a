"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from snaplink.core.config import get_settings

settings = get_settings()


def get_real_client_ip(request: Request) -> str:
    """Get the real client IP address, handling proxies.

    Checks X-Forwarded-For and X-Real-IP headers before falling back
    to the direct client address.
    """
    # X-Forwarded-For can contain multiple IPs: client, proxy1, proxy2
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    default_limits=["1000/hour"],
    storage_uri=settings.rate_limit_storage_uri or settings.redis_url,
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)

# Redirects are the hot path; unfurlers and browsers both hit it
RATE_LIMIT_REDIRECT = "1000/minute"

# Link creation fetches remote metadata, keep it low
RATE_LIMIT_CREATE_LINK = "60/hour"

RATE_LIMIT_API = "100/minute"
