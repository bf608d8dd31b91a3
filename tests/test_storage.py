"""
Tests for CartStorage persistence
"""

import asyncio
import json
import pytest
from decimal import Decimal

from shopcart.cart import CartLine, CartStorage


@pytest.mark.asyncio
async def test_missing_key_loads_empty(storage):
    """Test a session without snapshot starts empty"""
    assert await storage.load() == []


@pytest.mark.asyncio
async def test_round_trip(storage):
    """Test save followed by load yields equal lines"""
    lines = [
        CartLine(id="prod-1", name="Milk", price=Decimal("20"), unit="1L", image="milk.jpg", quantity=2),
        CartLine(id=42, name="Bread", price=Decimal("5.9"), unit="loaf", quantity=1, extra={"rating": 4}),
    ]

    assert await storage.save(lines) is True
    assert await storage.load() == lines


@pytest.mark.asyncio
async def test_saved_layout(redis, storage):
    """Test the stored value is a JSON array of line records"""
    await storage.save([CartLine(id="prod-1", name="Milk", price=20, quantity=3)])

    stored = json.loads(redis.data["cart:session-1"])
    assert stored == [
        {"id": "prod-1", "name": "Milk", "price": 20.0, "unit": "", "image": "", "quantity": 3}
    ]


@pytest.mark.asyncio
async def test_invalid_json_loads_empty(redis, storage, stored_snapshot):
    """Test unparseable data falls back to an empty cart"""
    stored_snapshot(redis, "{not json")
    assert await storage.load() == []


@pytest.mark.asyncio
async def test_non_list_loads_empty(redis, storage, stored_snapshot):
    """Test a non-array snapshot falls back to an empty cart"""
    stored_snapshot(redis, {"id": "prod-1", "quantity": 1})
    assert await storage.load() == []


@pytest.mark.asyncio
async def test_malformed_elements_dropped(redis, storage, stored_snapshot):
    """Test malformed elements are filtered and valid ones kept in order"""
    stored_snapshot(redis, [
        {"id": "a", "price": 1, "quantity": 1},
        {"name": "no id", "price": 1, "quantity": 1},
        "garbage",
        {"id": "b", "price": 2, "quantity": 0},
        {"id": "c", "price": -3, "quantity": 1},
        {"id": "d", "price": 4, "quantity": 2},
    ])

    lines = await storage.load()

    assert [line.id for line in lines] == ["a", "d"]


@pytest.mark.asyncio
async def test_duplicate_ids_merged(redis, storage, stored_snapshot):
    """Test duplicate ids in a snapshot merge into the first line"""
    stored_snapshot(redis, [
        {"id": "a", "name": "First", "price": 1, "quantity": 1},
        {"id": "b", "price": 2, "quantity": 1},
        {"id": "a", "name": "Second", "price": 1, "quantity": 2},
    ])

    lines = await storage.load()

    assert [(line.id, line.quantity) for line in lines] == [("a", 3), ("b", 1)]
    assert lines[0].name == "First"


@pytest.mark.asyncio
async def test_read_failure_loads_empty(failing_redis):
    """Test client errors on read never reach the caller"""
    storage = CartStorage(failing_redis, "session-1")
    assert await storage.load() == []


@pytest.mark.asyncio
async def test_write_failure_returns_false(failing_redis):
    """Test client errors on write are contained"""
    storage = CartStorage(failing_redis, "session-1")
    assert await storage.save([CartLine(id="a")]) is False


@pytest.mark.asyncio
async def test_ttl_passed_when_configured(redis):
    """Test a configured TTL is sent with the write"""
    storage = CartStorage(redis, "session-1", ttl=3600)
    await storage.save([CartLine(id="a")])

    assert redis.set_calls[-1][2] == 3600


@pytest.mark.asyncio
async def test_no_ttl_by_default(redis, storage):
    """Test snapshots do not expire by default"""
    await storage.save([CartLine(id="a")])
    assert redis.set_calls[-1][2] is None


@pytest.mark.asyncio
async def test_clear(redis, storage):
    """Test clear removes the snapshot"""
    await storage.save([CartLine(id="a")])
    assert await storage.clear() is True
    assert "cart:session-1" not in redis.data
    assert await storage.load() == []


@pytest.mark.asyncio
async def test_sessions_are_isolated(redis):
    """Test each session uses its own key"""
    first = CartStorage(redis, "s1")
    second = CartStorage(redis, "s2")

    await first.save([CartLine(id="a")])

    assert await second.load() == []
    assert first.key == "cart:s1"


@pytest.mark.asyncio
async def test_writes_apply_in_start_order(slow_redis):
    """Test a lagging first save cannot overwrite a later one"""
    storage = CartStorage(slow_redis, "session-1")

    first = asyncio.create_task(storage.save([CartLine(id="a", quantity=1)]))
    second = asyncio.create_task(storage.save([CartLine(id="a", quantity=3)]))
    await asyncio.gather(first, second)

    assert json.loads(slow_redis.data["cart:session-1"])[0]["quantity"] == 3


@pytest.mark.asyncio
async def test_clear_waits_for_pending_save(slow_redis):
    """Test a clear started after a save leaves the key deleted"""
    storage = CartStorage(slow_redis, "session-1")

    save = asyncio.create_task(storage.save([CartLine(id="a", quantity=1)]))
    clear = asyncio.create_task(storage.clear())

    assert await asyncio.gather(save, clear) == [True, True]
    assert "cart:session-1" not in slow_redis.data
