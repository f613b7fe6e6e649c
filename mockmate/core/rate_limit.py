from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from mockmate.core.config import settings


def client_key(request: Request) -> str:
    """Rate-limit bucket for a request: the caller's IP, proxy-aware when configured."""
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


limiter = Limiter(key_func=client_key, enabled=settings.rate_limit_enabled)


def rate_limit(limit: str | None = None):
    """Per-client limit for one route; ``RATE_LIMIT`` unless the route passes its own."""
    if not settings.rate_limit_enabled:

        def decorator(func):
            return func

        return decorator
    return limiter.limit(limit or settings.rate_limit)
