"""Centralized Redis connection configuration.

Both the API service (change fan-out, job enqueueing) and the arq worker read
their Redis settings from here so they always talk to the same instance.
"""

import os

from arq.connections import RedisSettings

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_DB = int(os.getenv("REDIS_DB", 0))

REDIS_URL = f"redis://{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}"

REDIS_SETTINGS = RedisSettings(
    host=REDIS_HOST,
    port=REDIS_PORT,
    database=REDIS_DB,
)


def get_redis_url() -> str:
    """Get Redis connection URL.

    Returns:
        Redis URL in format: redis://host:port/db
    """
    return REDIS_URL


def get_redis_settings() -> RedisSettings:
    """Get RedisSettings object for arq."""
    return REDIS_SETTINGS
