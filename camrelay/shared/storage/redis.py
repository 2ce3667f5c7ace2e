"""
Redis client holding the credential hashes.
"""

import threading
from redis.asyncio import Redis
from loguru import logger

from ..config import config


def hide_password(url: str) -> str:
    """Mask the password of a redis:// URL for logging."""
    if '@' not in url or '://' not in url:
        return url

    scheme, rest = url.split('://', 1)

    # passwords may contain @, the last one ends the credentials
    credentials, _, host = rest.rpartition('@')
    username, sep, password = credentials.partition(':')
    if not sep or not password:
        return url

    return f"{scheme}://{username}:***@{host}"


class RedisManager:
    """
    Owns the single async Redis client of the process.

    The connection URL is resolved once from configuration; the client is
    opened lazily on first use and closed on application shutdown.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return

        self._client: Redis | None = None
        self.url = config.get_redis_url()
        logger.info("Using Redis connection string: {}", hide_password(self.url))

        self._initialized = True

    def get_cache_client(self) -> Redis:
        with self._lock:
            if self._client is None:
                logger.info("Open Redis client: {}", hide_password(self.url))
                self._client = Redis.from_url(self.url, decode_responses=True)

            return self._client

    async def close(self):
        with self._lock:
            client, self._client = self._client, None

        if client is None:
            return

        try:
            await client.aclose()
            logger.info("Closed Redis client")
        except Exception as e:
            logger.error("Error closing Redis client: {}", e)


def get_redis_manager() -> RedisManager:
    """Get global RedisManager instance."""
    return RedisManager()
