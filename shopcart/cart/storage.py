"""Cart snapshot persistence in the session's key-value store."""
import asyncio
import json
from typing import Iterable, List, Optional

from shopcart.db import RedisKeys, TTL
from shopcart.errors import (
    ERROR_STORAGE_CLEAR,
    ERROR_STORAGE_CORRUPT,
    ERROR_STORAGE_READ,
    ERROR_STORAGE_WRITE,
)
from shopcart.logging import get_logger, get_session_logger
from .models import CartLine

logger = get_logger(__name__)


def merge_lines(lines: Iterable[CartLine]) -> List[CartLine]:
    """
    Collapse lines with the same id by adding quantities.

    The first occurrence keeps its position and fields.
    """
    merged: List[CartLine] = []
    positions = {}
    for line in lines:
        pos = positions.get(line.id)
        if pos is None:
            positions[line.id] = len(merged)
            merged.append(line)
        else:
            existing = merged[pos]
            merged[pos] = existing.with_quantity(existing.quantity + line.quantity)
    return merged


def restore_lines(records: list) -> List[CartLine]:
    """
    Rebuild cart lines from a parsed snapshot.

    Malformed elements are dropped; repeated ids are merged.
    """
    lines: List[CartLine] = []
    for index, record in enumerate(records):
        try:
            lines.append(CartLine.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"{ERROR_STORAGE_CORRUPT}: dropping element {index}: {e}")
    return merge_lines(lines)


class CartStorage:
    """
    Reads and writes the serialized cart for one session.

    The client is any async key-value client with the Upstash Redis
    interface (get/set/delete). Every failure is logged and contained:
    load() falls back to an empty cart, save() reports False.

    Writes (save and clear) go through one lock, so they reach the
    store in the order they were started and the last write wins.
    """

    def __init__(self, redis, session_id: str, ttl: Optional[int] = None):
        self._redis = redis
        self.session_id = session_id
        self.key = RedisKeys.cart_key(session_id)
        self.ttl = TTL.CART if ttl is None else ttl
        self._write_lock = asyncio.Lock()
        self._log = get_session_logger(__name__, session_id)

    async def load(self) -> List[CartLine]:
        """Get the stored cart, or [] when missing, unreadable or corrupted."""
        try:
            data = await self._redis.get(self.key)
        except Exception as e:
            self._log.error(f"{ERROR_STORAGE_READ}: {e}")
            return []

        if not data:
            return []

        try:
            parsed = json.loads(data)
        except (json.JSONDecodeError, TypeError) as e:
            self._log.warning(f"{ERROR_STORAGE_CORRUPT}: {e}")
            return []

        if not isinstance(parsed, list):
            self._log.warning(
                f"{ERROR_STORAGE_CORRUPT}: expected a list, got {type(parsed).__name__}"
            )
            return []

        return restore_lines(parsed)

    async def save(self, lines: Iterable[CartLine]) -> bool:
        """Write the full cart. Returns False (and logs) on failure."""
        # Serialize before waiting so the snapshot is the cart as of this call
        try:
            payload = json.dumps([line.to_dict() for line in lines])
        except (TypeError, ValueError) as e:
            self._log.error(f"{ERROR_STORAGE_WRITE}: {e}")
            return False

        async with self._write_lock:
            try:
                if self.ttl:
                    await self._redis.set(self.key, payload, ex=self.ttl)
                else:
                    await self._redis.set(self.key, payload)
                return True
            except Exception as e:
                self._log.error(f"{ERROR_STORAGE_WRITE}: {e}")
                return False

    async def clear(self) -> bool:
        """Delete the stored snapshot. Returns False (and logs) on failure."""
        async with self._write_lock:
            try:
                await self._redis.delete(self.key)
                return True
            except Exception as e:
                self._log.error(f"{ERROR_STORAGE_CLEAR}: {e}")
                return False
