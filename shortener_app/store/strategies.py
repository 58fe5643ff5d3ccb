"""
Key-value store strategies using Strategy Pattern.
Allows switching between different store backends (Redis, In-Memory).
"""

import functools
import logging
import threading
import time
from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from typing import Dict, List, Optional, Tuple

import redis

from shortener_app.exceptions import StoreError, StoreUnavailable

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Abstract base class for key-value store strategies.

    This is the Strategy Pattern interface - the mapping store talks to this
    interface only, so the backend can be swapped without touching it.

    Every method is a blocking round-trip. Failures to reach the backend
    raise StoreUnavailable, any other backend failure raises StoreError.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Get value from the store.

        Args:
            key: Store key

        Returns:
            Stored value or None if not found
        """
        pass

    @abstractmethod
    def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
        only_if_absent: bool = False,
        only_if_present: bool = False,
        keep_ttl: bool = False,
    ) -> bool:
        """
        Set value in the store.

        Args:
            key: Store key
            value: Value to store
            ttl: Time to live in seconds (None: no expiration)
            only_if_absent: Only write if the key does not exist (atomic)
            only_if_present: Only write if the key already exists (atomic)
            keep_ttl: Keep the remaining TTL of an existing key

        Returns:
            True if written, False if rejected by only_if_absent or only_if_present
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete key from the store.

        Returns:
            True if deleted, False if key didn't exist
        """
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if key exists in the store"""
        pass

    @abstractmethod
    def ttl(self, key: str) -> Optional[int]:
        """Remaining time to live in seconds, None if missing or persistent"""
        pass

    @abstractmethod
    def keys(self, pattern: str) -> List[str]:
        """List keys matching a glob-style pattern"""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Check the backend is reachable (raises StoreUnavailable if not)"""
        pass

    def close(self) -> None:
        """Release backend resources"""


def _translate_redis_errors(method):
    """Re-raise redis-py exceptions as store exceptions."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            logger.error("Redis unavailable during %s: %s", method.__name__, e)
            raise StoreUnavailable(str(e)) from e
        except redis.exceptions.RedisError as e:
            logger.error("Redis error during %s: %s", method.__name__, e)
            raise StoreError(str(e)) from e

    return wrapper


class RedisStore(KeyValueStore):
    """
    Redis store implementation.

    Production store with:
    - Shared state (multiple servers can use the same store)
    - Atomic SET NX for conditional writes
    - TTL support (SET EX / KEEPTTL)

    One client backed by a connection pool is created at startup and shared
    by every request; each command borrows a pooled connection.
    """

    def __init__(self, redis_client: redis.Redis):
        """
        Initialize Redis store.

        Args:
            redis_client: Redis client instance (redis.Redis)
        """
        self.redis = redis_client

    @classmethod
    def from_url(
        cls,
        url: str,
        socket_timeout: float = 2.0,
        max_connections: int = 50,
        pool_timeout: float = 5.0,
    ) -> "RedisStore":
        # Threads wait up to pool_timeout for a free connection
        pool = redis.BlockingConnectionPool.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
            max_connections=max_connections,
            timeout=pool_timeout,
        )
        return cls(redis.Redis(connection_pool=pool))

    @_translate_redis_errors
    def get(self, key: str) -> Optional[str]:
        return self.redis.get(key)

    @_translate_redis_errors
    def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
        only_if_absent: bool = False,
        only_if_present: bool = False,
        keep_ttl: bool = False,
    ) -> bool:
        result = self.redis.set(
            key,
            value,
            ex=ttl,
            nx=only_if_absent,
            xx=only_if_present,
            keepttl=keep_ttl,
        )
        return bool(result)

    @_translate_redis_errors
    def delete(self, key: str) -> bool:
        return bool(self.redis.delete(key))

    @_translate_redis_errors
    def exists(self, key: str) -> bool:
        return bool(self.redis.exists(key))

    @_translate_redis_errors
    def ttl(self, key: str) -> Optional[int]:
        remaining = self.redis.ttl(key)
        # -2: missing key, -1: no expiration
        return remaining if remaining >= 0 else None

    @_translate_redis_errors
    def keys(self, pattern: str) -> List[str]:
        return list(self.redis.scan_iter(match=pattern))

    @_translate_redis_errors
    def ping(self) -> bool:
        return bool(self.redis.ping())

    def close(self) -> None:
        self.redis.close()
        self.redis.connection_pool.disconnect()


class InMemoryStore(KeyValueStore):
    """
    In-memory store implementation using Python dict.

    Pros:
    - Very fast (no network overhead)
    - Simple (no external dependencies)
    - Good for development and testing

    Cons:
    - Not shared (each process has its own data)
    - Lost on restart

    Expired keys are dropped lazily on access. A lock makes conditional
    writes atomic across request threads.
    """

    def __init__(self):
        """Initialize in-memory store"""
        # key -> (value, expires_at monotonic or None)
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _live_entry(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return None
        return entry

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
        only_if_absent: bool = False,
        only_if_present: bool = False,
        keep_ttl: bool = False,
    ) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            if only_if_absent and entry is not None:
                return False
            if only_if_present and entry is None:
                return False
            if keep_ttl and entry is not None:
                expires_at = entry[1]
            elif ttl is not None:
                expires_at = time.monotonic() + ttl
            else:
                expires_at = None
            self._data[key] = (value, expires_at)
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            if self._live_entry(key) is None:
                return False
            del self._data[key]
            return True

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def ttl(self, key: str) -> Optional[int]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry[1] is None:
                return None
            return int(entry[1] - time.monotonic())

    def keys(self, pattern: str) -> List[str]:
        with self._lock:
            return [
                key for key in list(self._data)
                if self._live_entry(key) is not None and fnmatchcase(key, pattern)
            ]

    def ping(self) -> bool:
        return True
