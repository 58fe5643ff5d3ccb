"""
Key-value store module for URL shortener.
Implements Strategy Pattern for flexible store backends.
"""

from .strategies import KeyValueStore, RedisStore, InMemoryStore
from .factory import StoreFactory, StoreBackend

__all__ = [
    "KeyValueStore",
    "RedisStore",
    "InMemoryStore",
    "StoreFactory",
    "StoreBackend",
]
