"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import Mock

# Keep the test run off any real Redis
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "")

from shopcart import CartManager, MemoryStore


@pytest.fixture
def store():
    """Fresh in-memory store"""
    return MemoryStore()


@pytest.fixture
def notifier():
    """Mock notifier recording every fire() call"""
    return Mock()


@pytest.fixture
def cart(store, notifier):
    """Cart manager on the default instance with merge policy"""
    return CartManager(store=store, notifier=notifier, duplicate_policy="merge")


@pytest.fixture
def mock_redis():
    """Mock Upstash Redis client"""
    redis = Mock()
    redis.get.return_value = None
    redis.exists.return_value = 0
    return redis


@pytest.fixture
def foil_item():
    """Sample item with options"""
    return {
        "id": "LEA_1",
        "name": "Product 1",
        "quantity": 2,
        "price": 9.99,
        "options": {
            "condition": "nm",
            "style": "foil",
        },
    }


@pytest.fixture
def two_items():
    """Batch used for total and count checks"""
    return [
        {
            "id": "KTK_8",
            "name": "Product 1",
            "quantity": 9,
            "price": 2.34,
            "options": {"condition": "nm", "style": "foil"},
        },
        {
            "id": "LEA_1",
            "name": "Product 2",
            "quantity": 5,
            "price": 5.85,
            "options": {"condition": "nm", "style": "normal"},
        },
    ]