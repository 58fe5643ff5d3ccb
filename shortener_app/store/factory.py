"""
Factory for creating key-value store instances.
Simple, clean factory with singleton caching.
"""

import logging
from enum import Enum

from .strategies import KeyValueStore, RedisStore, InMemoryStore
from shortener_app.config import settings
from shortener_app.exceptions import StoreError

logger = logging.getLogger(__name__)


class StoreBackend(Enum):
    """Available store backends"""
    REDIS = "redis"
    MEMORY = "memory"


class StoreFactory:
    """
    Simple factory for creating store instances.

    Uses Singleton Pattern - creates instance once, reuses it.
    Gets configuration from settings (not passed as parameters).
    """

    _instance: KeyValueStore = None  # Single cached instance

    @classmethod
    def create(cls, backend: StoreBackend) -> KeyValueStore:
        """
        Create or return cached store instance.

        Args:
            backend: Type of store backend (from enum)

        Returns:
            Singleton store instance
        """
        # Return cached instance if exists
        if cls._instance is not None:
            return cls._instance

        if backend == StoreBackend.REDIS:
            store = RedisStore.from_url(
                settings.redis_url,
                socket_timeout=settings.redis_socket_timeout,
                max_connections=settings.redis_max_connections,
                pool_timeout=settings.redis_pool_timeout,
            )

            # The app still starts without Redis; requests fail with 503
            # until it becomes reachable.
            try:
                store.ping()
                logger.info("Redis store initialized (%s)", settings.redis_url)
            except StoreError as e:
                logger.warning("Redis connection failed: %s", e)
                logger.warning(
                    "App will continue but URL shortening won't work until Redis is available"
                )

            cls._instance = store

        elif backend == StoreBackend.MEMORY:
            cls._instance = InMemoryStore()
            logger.info("In-memory store initialized")

        else:
            raise ValueError(f"Unknown store backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Close and clear cached instance (shutdown and testing)"""
        if cls._instance is not None:
            cls._instance.close()
        cls._instance = None
