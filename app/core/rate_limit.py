"""IP based rate limiting (SlowAPI); honours X-Forwarded-For behind a proxy."""
from fastapi import Request

from slowapi import Limiter

from .config import settings

# subscribe and unsubscribe count against one shared per-IP budget
SUBSCRIPTION_SCOPE = "push-subscription"


def _get_client_ip(request: Request) -> str:
    """Real client IP behind a proxy (Render, Nginx)."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def user_rate_limit() -> str:
    """Per-IP limit for end-user writes, read from settings on every request."""
    return f"{settings.rate_limit_per_minute}/minute"


limiter = Limiter(key_func=_get_client_ip)
subscription_limit = limiter.shared_limit(user_rate_limit, scope=SUBSCRIPTION_SCOPE)
