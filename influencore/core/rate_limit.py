import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from influencore.core.config import settings

logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    """limit per user when the caller is identified, per ip otherwise"""
    return request.headers.get("x-user-id") or get_remote_address(request)


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    retry_after = exc.limit.limit.get_expiry()
    logger.warning(f"rate limit exceeded for {rate_limit_key(request)} on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests, please try again later.",
            "retryAfter": retry_after
        },
        headers={"Retry-After": str(retry_after)}
    )
