"""Rate limiting for the public appointment pages (token links are unauthenticated)."""

import logging
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from consultdesk.core.config import settings

logger = logging.getLogger(__name__)

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
MEMORY_STORAGE = "memory://"


def _storage_uri(redis_url: str) -> str:
    """Shared Redis storage when reachable, per-process memory otherwise."""
    if not redis_url:
        return MEMORY_STORAGE
    try:
        import redis

        redis.from_url(redis_url, socket_connect_timeout=1).ping()
    except Exception as e:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", e)
        return MEMORY_STORAGE
    return redis_url


def build_limiter() -> Limiter:
    if IS_TESTING:
        return Limiter(key_func=get_remote_address, storage_uri=MEMORY_STORAGE, enabled=False)
    return Limiter(key_func=get_remote_address, storage_uri=_storage_uri(settings.REDIS_URL))


limiter = build_limiter()
