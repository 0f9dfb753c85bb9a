"""Redis client utilities used for the embedding cache."""

import json
import logging
from typing import Any, Optional

import redis

logger = logging.getLogger(__name__)


class RedisClient:
    """Redis client wrapper with JSON (de)serialisation.

    Cache failures are logged and reported as misses; they never break a request.
    """

    def __init__(self, redis_connection: redis.Redis):
        """Initialize Redis client.

        Args:
            redis_connection: Redis connection instance
        """
        self.client = redis_connection

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache.

        Returns:
            Cached value or None
        """
        try:
            value = self.client.get(key)
            if value:
                return json.loads(value)
        except (redis.RedisError, ValueError) as e:
            logger.error(f"Error getting from cache: {e}")
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache.

        Args:
            key: Cache key
            value: JSON-serialisable value
            ttl: Time to live in seconds

        Returns:
            True if successful
        """
        try:
            self.client.set(key, json.dumps(value), ex=ttl)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Error setting cache: {e}")
            return False

    def delete(self, key: str) -> bool:
        try:
            self.client.delete(key)
            return True
        except redis.RedisError as e:
            logger.error(f"Error deleting from cache: {e}")
            return False
