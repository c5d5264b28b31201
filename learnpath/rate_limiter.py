from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
from .config import get_settings
import logging

logger = logging.getLogger(__name__)

# Initialize limiter with remote address as key
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],  # Global default
    storage_uri="memory://",  # In-memory storage (use Redis for production)
    enabled=get_settings().rate_limit_enabled,
)

# Each generation fans out into one search per keyword plus detail batches,
# all charged against the YouTube API quota
RATE_LIMITS = {
    "goals_generate": "10/minute",
    "youtube_video": "60/minute",
    "general": "100/minute",
}


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Custom error handler for rate limit exceeded errors."""
    client_host = request.client.host if request.client else "unknown"
    logger.warning(f"Rate limit exceeded for {client_host} on {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "message": "Too many requests. Please try again later.",
            "retry_after": exc.detail if hasattr(exc, 'detail') else "60 seconds"
        },
        headers={
            "Retry-After": "60",
            "X-RateLimit-Limit": str(getattr(exc, 'limit', RATE_LIMITS["general"])),
        }
    )
