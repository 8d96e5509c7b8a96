"""
Shared redis-py asyncio client.

Holds short-lived auth state only: revoked access-token IDs and
failed-login counters. Nothing here is required to survive a flush.
"""

import redis.asyncio as aioredis

from app.config import settings


def _redis_url() -> str:
    # TLS is selected by the rediss:// scheme
    if settings.REDIS_SSL and settings.REDIS_URL.startswith("redis://"):
        return "rediss://" + settings.REDIS_URL[len("redis://"):]
    return settings.REDIS_URL


redis = aioredis.from_url(_redis_url(), decode_responses=True)


async def get_redis() -> aioredis.Redis:
    return redis
