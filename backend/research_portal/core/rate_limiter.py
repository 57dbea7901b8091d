"""
Rate Limiting for the Research Portal API
=========================================
Implements rate limiting using slowapi.

Storage defaults to in-process memory; point RATE_LIMIT_STORAGE_URI at
redis://... when running more than one worker.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from research_portal.core.config import settings
from research_portal.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: forwarded client address, falling back to the socket peer"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{get_remote_address(request)}"


# Create limiter instance
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Returns a JSON body with the error and a Retry-After header.
    """
    retry_after = exc.detail.split(":")[-1].strip() if exc.detail else "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail),
            "retry_after_seconds": int(retry_after) if retry_after.isdigit() else 60,
        },
        headers={
            "Retry-After": retry_after if retry_after.isdigit() else "60",
            "X-RateLimit-Limit": str(settings.RATE_LIMIT_PER_MINUTE),
        }
    )


def write_rate_limit():
    """Tighter limit for state-changing lifecycle operations (20/min)"""
    return limiter.limit("20/minute", key_func=get_client_identifier)
