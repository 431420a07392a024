"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import AsyncMock

# Keep tests off real Redis
os.environ["UPSTASH_REDIS_REST_URL"] = ""
os.environ["UPSTASH_REDIS_REST_TOKEN"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

from marketplace.cart import CartStore, InMemoryPersistence, SingleKeyLayout, PerItemLayout  # noqa: E402
from marketplace.config import DEFAULT_KEY_PREFIX, DEFAULT_STORAGE_KEY  # noqa: E402


@pytest.fixture
def persistence():
    """Empty in-memory key-value store"""
    return InMemoryPersistence()


@pytest.fixture
def single_layout():
    return SingleKeyLayout(DEFAULT_STORAGE_KEY)


@pytest.fixture
def per_item_layout():
    return PerItemLayout(DEFAULT_KEY_PREFIX)


@pytest.fixture
def store(persistence, single_layout):
    """Uninitialized store over the in-memory backend"""
    return CartStore(persistence=persistence, layout=single_layout)


@pytest.fixture
def sample_product():
    """Catalog product as sent by the product list screen"""
    return {
        "id": "a",
        "title": "Cadeira Rivatti",
        "image_url": "https://storage.example.com/cadeira.png",
        "price": 10,
    }


@pytest.fixture
def other_product():
    return {
        "id": "b",
        "title": "Poltrona de madeira",
        "image_url": "https://storage.example.com/poltrona.png",
        "price": 5.5,
    }


@pytest.fixture
def failing_persistence():
    """Store whose writes always fail"""
    from marketplace.errors import PersistenceError

    backend = AsyncMock()
    backend.get.return_value = None
    backend.list_keys.return_value = set()
    backend.set.side_effect = PersistenceError("set", DEFAULT_STORAGE_KEY, RuntimeError("connection reset"))
    backend.remove.side_effect = PersistenceError("remove", DEFAULT_STORAGE_KEY, RuntimeError("connection reset"))
    return backend
