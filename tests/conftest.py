"""
Test configuration and fixtures for FastAPI URL shortener.
This centralizes all test setup, making individual tests clean.
"""

import pytest
from fastapi.testclient import TestClient
from main import app
from shortener_app.dependencies import get_store
from shortener_app.services.mapping_store import MappingStore
from shortener_app.store.strategies import InMemoryStore


@pytest.fixture(scope="function")
def store():
    """
    Create a fresh in-memory store for each test.
    This ensures tests are isolated and don't affect each other.
    """
    store = InMemoryStore()
    try:
        yield store
    finally:
        # Cleanup
        MappingStore(store).clear()


@pytest.fixture(scope="function")
def mapping_store(store):
    """Mapping store on top of the test store"""
    return MappingStore(store)


@pytest.fixture(scope="function")
def client(store):
    """
    Create a test client with the store dependency overridden.
    This is the main fixture that tests will use.
    """
    # Override the store dependency
    app.dependency_overrides[get_store] = lambda: store

    # Create test client
    with TestClient(app) as test_client:
        yield test_client

    # Clean up overrides
    app.dependency_overrides.clear()
