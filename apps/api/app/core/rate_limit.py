"""Rate limiting configuration for the RFP API."""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

logger = logging.getLogger(__name__)

# Configure rate limiter with Redis for multi-worker support
# Falls back to in-memory if Redis is not available (dev/test mode)
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = [settings.RATE_LIMIT_API] if settings.RATE_LIMIT_API else []

# Per-concern limits (client IP keyed, fixed windows)
AUTH_LIMIT = settings.RATE_LIMIT_AUTH
AI_GENERATION_LIMIT = settings.RATE_LIMIT_AI_GENERATION
AI_REFINEMENT_LIMIT = settings.RATE_LIMIT_AI_REFINEMENT
UPLOAD_LIMIT = settings.RATE_LIMIT_UPLOAD
EXPORT_LIMIT = settings.RATE_LIMIT_EXPORT
INVITATION_LIMIT = settings.RATE_LIMIT_INVITATION
ANALYTICS_LIMIT = settings.RATE_LIMIT_ANALYTICS


def _memory_limiter() -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        storage_uri="memory://",
        default_limits=DEFAULT_LIMITS,
    )


def build_limiter(testing: bool = IS_TESTING, redis_url: str = REDIS_URL) -> Limiter:
    """Redis-backed limiter when Redis answers a ping, in-memory otherwise (always in tests)."""
    if testing:
        return _memory_limiter()
    try:
        import redis

        r = redis.from_url(redis_url, socket_connect_timeout=1)
        r.ping()
        return Limiter(
            key_func=get_remote_address,
            storage_uri=redis_url,
            default_limits=DEFAULT_LIMITS,
        )
    except Exception as e:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", e)
        return _memory_limiter()


limiter = build_limiter()
