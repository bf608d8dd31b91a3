"""Pytest configuration and fixtures"""
import asyncio
import json
import os
import pytest
from unittest.mock import AsyncMock

# Set test environment variables
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")

from shopcart.cart import CartPanel, CartStorage, CartStore


class InMemoryRedis:
    """Async key-value fake with the subset of the Upstash client the cart uses."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.set_calls = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.set_calls.append((key, value, ex))
        self.data[key] = value
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed


class SlowRedis(InMemoryRedis):
    """In-memory store whose first write (and optionally every read) lags."""

    def __init__(self, data=None, read_delay=0.0, first_write_delay=0.05):
        super().__init__(data)
        self.read_delay = read_delay
        self.first_write_delay = first_write_delay
        self._writes = 0

    async def get(self, key):
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        return await super().get(key)

    async def set(self, key, value, ex=None):
        self._writes += 1
        if self._writes == 1:
            await asyncio.sleep(self.first_write_delay)
        return await super().set(key, value, ex=ex)


@pytest.fixture
def redis():
    """Empty in-memory key-value store"""
    return InMemoryRedis()


@pytest.fixture
def slow_redis():
    """In-memory store whose first write lags behind later ones"""
    return SlowRedis()


@pytest.fixture
def failing_redis():
    """Key-value client whose every call fails"""
    client = AsyncMock()
    client.get.side_effect = ConnectionError("storage unavailable")
    client.set.side_effect = OSError("quota exceeded")
    client.delete.side_effect = ConnectionError("storage unavailable")
    return client


@pytest.fixture
def storage(redis):
    """Cart storage for a test session"""
    return CartStorage(redis, "session-1")


@pytest.fixture
def store(storage):
    """Cart store with a short panel delay (not activated)"""
    return CartStore(storage, CartPanel(open_delay=0.01))


@pytest.fixture
def sample_product():
    """Sample product as supplied by a product card"""
    return {
        "id": "prod-1",
        "name": "Fresh Milk",
        "price": 20,
        "unit": "1L",
        "image": "https://cdn.example.com/milk.jpg",
        "quantity": 1,
    }


@pytest.fixture
def stored_snapshot():
    """Helper to write a raw JSON snapshot for a session"""
    def _write(redis_client, records, session_id="session-1"):
        redis_client.data[f"cart:{session_id}"] = (
            records if isinstance(records, str) else json.dumps(records)
        )
    return _write
