"""HTTP rate limiting (slowapi).

A default per-origin limit guards every route through ``SlowAPIMiddleware``;
the login route carries a stricter limit so repeated failed logins from one
origin are throttled.  ``RATE_LIMIT_ENABLED=false`` switches both off.
"""

import logging

from slowapi import Limiter
from starlette.requests import Request

from cinestream.core.config import settings
from cinestream.utils.net import client_ip

logger = logging.getLogger(__name__)

__all__ = ["limiter", "rate_limit_key", "login_rate_limit"]


def rate_limit_key(request: Request) -> str:
    return f"ip:{client_ip(request)}"


def login_rate_limit() -> str:
    return settings.RATE_LIMIT_LOGIN


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[
        chunk.strip()
        for chunk in settings.RATE_LIMIT_DEFAULT.split(",")
        if chunk.strip()
    ],
    storage_uri=settings.RATELIMIT_STORAGE_URI or "memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)

logger.info(
    "Rate limiter ready | enabled=%s | default=%s | login=%s",
    settings.RATE_LIMIT_ENABLED,
    settings.RATE_LIMIT_DEFAULT,
    settings.RATE_LIMIT_LOGIN,
)
