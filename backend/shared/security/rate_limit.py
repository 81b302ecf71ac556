"""
Rate limiting for unauthenticated endpoints using slowapi (client IP key).

Usage:
    from shared.security.rate_limit import limiter, PUBLIC_ORDER_LIMIT

    @router.post("/public/orders")
    @limiter.limit(PUBLIC_ORDER_LIMIT)
    async def create(request: Request, ...):
        ...
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.config.settings import settings
from shared.config.logging import get_logger

logger = get_logger(__name__)

limiter = Limiter(key_func=get_remote_address)

PUBLIC_ORDER_LIMIT = settings.public_order_rate_limit


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the same `{message}` body as every other error."""
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={"message": f"Too many requests: {exc.detail}"},
    )
