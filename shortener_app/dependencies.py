"""
FastAPI dependencies for dependency injection.

This module provides the singleton key-value store and the mapping store
built on top of it, plus the base URL used to build short links.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (override get_store with an in-memory store)
- Flexible (swap implementations via config)
"""

from functools import lru_cache

from fastapi import Depends, Request

from shortener_app.config import settings
from shortener_app.services.mapping_store import MappingStore
from shortener_app.store.factory import StoreBackend, StoreFactory
from shortener_app.store.strategies import KeyValueStore


@lru_cache()
def get_store() -> KeyValueStore:
    """
    Get store instance (singleton).

    Factory gets config from settings internally.
    @lru_cache ensures this is called only once.
    """
    backend = StoreBackend(settings.store_backend)
    return StoreFactory.create(backend)


def get_mapping_store(store: KeyValueStore = Depends(get_store)) -> MappingStore:
    """Get MappingStore with the shared store client injected."""
    return MappingStore(store)


def get_base_url(request: Request) -> str:
    """
    Base URL for short links.

    BASE_URL wins when configured. Otherwise production builds it from the
    request's Host header and development points at the local server.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")
    if settings.is_production:
        return f"https://{request.headers.get('host', 'localhost')}"
    return f"http://localhost:{settings.port}"


def build_short_url(base_url: str, short_code: str) -> str:
    return f"{base_url}/{short_code}"
