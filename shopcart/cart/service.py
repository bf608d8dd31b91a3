"""Cart store: the authoritative cart lines for one browsing session."""
import asyncio
from typing import Any, Callable, List, Mapping, Optional, Set, Tuple, Union

from pydantic import ValidationError

from shopcart.db import get_redis
from shopcart.errors import (
    REASON_INVALID_PRODUCT,
    REASON_INVALID_QUANTITY,
    REASON_MISSING_ID,
    REASON_MISSING_PRODUCT,
)
from shopcart.logging import get_session_logger, sanitize_id_for_logging, sanitize_string_for_logging
from .models import (
    AddedToCartNotice,
    AddResult,
    CartLine,
    CartSnapshot,
    CartTotals,
    ProductId,
    ProductInput,
)
from .panel import CartPanel
from .storage import CartStorage, merge_lines
from .totals import calculate_totals

SnapshotListener = Callable[[CartSnapshot], None]
NoticeListener = Callable[[AddedToCartNotice], None]


class CartStore:
    """
    Owns the cart lines of a session.

    Features:
    - Merge-by-add: adding a product already in the cart increases its quantity
    - Write-through persistence: every change schedules a save immediately
    - Deferred panel opening after additions
    - Subscribers get a CartSnapshot after every change

    Usage:
        store = await open_cart_store(session_id)
        result = store.add_to_cart({"id": "p1", "price": 12.5})
        store.update_quantity("p1", 3)
        totals = store.get_totals()

    Mutations run synchronously; saves and the panel timer run on the
    event loop. Invalid input is logged and ignored, never raised.
    """

    def __init__(self, storage: CartStorage, panel: Optional[CartPanel] = None):
        self._storage = storage
        self._log = get_session_logger(__name__, storage.session_id)
        self._panel = panel or CartPanel(session_id=storage.session_id)
        self._lines: List[CartLine] = []
        self._activated = False
        self._pending_saves: Set[asyncio.Task] = set()
        self._listeners: List[SnapshotListener] = []
        self._notice_listeners: List[NoticeListener] = []
        self._panel.on_change(lambda _is_open: self._notify())

    # ==================== LIFECYCLE ====================

    async def activate(self) -> None:
        """
        Seed lines from the persisted snapshot. Runs once per store.

        Lines added while the snapshot was loading are merged after the
        restored ones (merge-by-add) and the merged cart is saved.
        """
        if self._activated:
            return
        self._activated = True
        restored = await self._storage.load()
        if not restored:
            return

        added_meanwhile = list(self._lines)
        self._lines = merge_lines([*restored, *added_meanwhile])
        self._log.debug(f"Restored {len(restored)} cart line(s)")
        if added_meanwhile:
            self._log.info(f"Merged {len(added_meanwhile)} line(s) added during restore")
            self._changed()
        else:
            self._notify()

    async def flush(self) -> None:
        """Wait for scheduled saves to finish."""
        while self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)

    # ==================== READS ====================

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def panel(self) -> CartPanel:
        return self._panel

    @property
    def is_open(self) -> bool:
        return self._panel.is_open

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: ProductId) -> Optional[CartLine]:
        return next((line for line in self._lines if line.id == product_id), None)

    def get_totals(self) -> CartTotals:
        return calculate_totals(self._lines)

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(lines=self.lines, is_open=self.is_open, totals=self.get_totals())

    # ==================== MUTATIONS ====================

    def add_to_cart(self, product: Union[Mapping[str, Any], ProductInput, None]) -> AddResult:
        """
        Add a product, merging with an existing line of the same id.

        Returns AddResult.success(line) with the resulting line, or
        AddResult.noop(reason) for missing/invalid input.
        """
        parsed = self._parse_product(product)
        if isinstance(parsed, AddResult):
            return parsed

        requested = parsed.requested_quantity
        index = self._index_of(parsed.id)
        if index is not None:
            existing = self._lines[index]
            line = existing.with_quantity(existing.quantity + requested)
            self._lines[index] = line
        else:
            line = CartLine.from_product(parsed, requested)
            self._lines.append(line)

        self._log.info(
            f"Added {requested} x {sanitize_id_for_logging(line.id)} to cart "
            f"(quantity now {line.quantity})"
        )
        self._changed()
        self._announce(AddedToCartNotice.from_line(line, requested))
        self._panel.schedule_open()
        return AddResult.success(line)

    def update_quantity(self, product_id: ProductId, new_quantity: int) -> None:
        """Set a line's quantity; anything below 1 removes the line."""
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int):
            self._log.warning(
                f"Ignoring quantity update for {sanitize_id_for_logging(product_id)}: "
                f"{REASON_INVALID_QUANTITY} ({new_quantity!r})"
            )
            return

        if new_quantity < 1:
            self.remove_item(product_id)
            return

        index = self._index_of(product_id)
        if index is None:
            return
        existing = self._lines[index]
        if existing.quantity == new_quantity:
            return
        self._lines[index] = existing.with_quantity(new_quantity)
        self._changed()

    def remove_item(self, product_id: ProductId) -> None:
        """Delete the line for product_id. No-op if absent."""
        index = self._index_of(product_id)
        if index is None:
            return
        del self._lines[index]
        self._log.info(f"Removed {sanitize_id_for_logging(product_id)} from cart")
        self._changed()

    def clear_cart(self) -> None:
        """Empty the cart (e.g. after checkout) and drop the stored snapshot."""
        if not self._lines:
            return
        self._lines = []
        self._schedule(self._storage.clear())
        self._notify()

    def set_open(self, value: bool) -> None:
        self._panel.set_open(value)

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call listener with a CartSnapshot after every change. Returns unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_added(self, listener: NoticeListener) -> Callable[[], None]:
        """Call listener with an AddedToCartNotice after each successful add."""
        self._notice_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._notice_listeners:
                self._notice_listeners.remove(listener)

        return unsubscribe

    # ==================== INTERNALS ====================

    def _parse_product(self, product) -> Union[ProductInput, AddResult]:
        if product is None:
            self._log.warning(f"Invalid product: {REASON_MISSING_PRODUCT}")
            return AddResult.noop(REASON_MISSING_PRODUCT)

        if isinstance(product, ProductInput):
            return product

        if not isinstance(product, Mapping):
            self._log.warning(f"Invalid product: {REASON_INVALID_PRODUCT} ({type(product).__name__})")
            return AddResult.noop(REASON_INVALID_PRODUCT)

        product_id = product.get("id")
        if product_id is None or product_id == "":
            self._log.warning(
                f"Invalid product: {REASON_MISSING_ID} "
                f"(name={sanitize_string_for_logging(product.get('name'))})"
            )
            return AddResult.noop(REASON_MISSING_ID)

        try:
            return ProductInput.model_validate(dict(product))
        except ValidationError as e:
            self._log.warning(
                f"Invalid product {sanitize_id_for_logging(product_id)}: "
                f"{REASON_INVALID_PRODUCT} ({e.error_count()} error(s))"
            )
            return AddResult.noop(REASON_INVALID_PRODUCT)

    def _index_of(self, product_id: ProductId) -> Optional[int]:
        return next((i for i, line in enumerate(self._lines) if line.id == product_id), None)

    def _changed(self) -> None:
        self._schedule(self._storage.save(list(self._lines)))
        self._notify()

    def _schedule(self, coro) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            self._log.warning("No running event loop, cart snapshot not persisted")
            return
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self._log.warning(f"Cart listener failed: {e}", exc_info=True)

    def _announce(self, notice: AddedToCartNotice) -> None:
        for listener in list(self._notice_listeners):
            try:
                listener(notice)
            except Exception as e:
                self._log.warning(f"Add-to-cart notice listener failed: {e}", exc_info=True)


async def open_cart_store(
    session_id: str,
    redis=None,
    open_delay: Optional[float] = None,
    ttl: Optional[int] = None,
) -> CartStore:
    """
    Build and activate the cart store for a session.

    Args:
        session_id: Browsing session identifier (scopes the storage key)
        redis: Async key-value client; defaults to a new Upstash client
        open_delay: Panel open delay in seconds (default CART_OPEN_DELAY)
        ttl: Snapshot TTL in seconds (default CART_TTL_SECONDS)

    Raises:
        StorageUnavailable: If no client is given and Upstash is not configured
    """
    if redis is None:
        redis = get_redis()
    storage = CartStorage(redis, session_id, ttl=ttl)
    store = CartStore(storage, CartPanel(open_delay=open_delay, session_id=session_id))
    await store.activate()
    return store
