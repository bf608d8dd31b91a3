"""Cart panel visibility with deferred opening after additions."""
import asyncio
from typing import Callable, List, Optional

from shopcart import config
from shopcart.logging import get_session_logger

VisibilityListener = Callable[[bool], None]


class CartPanel:
    """
    Open/closed flag for the cart panel.

    States: closed (initial) and open. Setting the current state again is a
    no-op and does not notify. Additions open the panel through a timer
    (`schedule_open`) so several quick adds settle before the panel shows.
    """

    def __init__(self, open_delay: Optional[float] = None, session_id: Optional[str] = None):
        self._log = get_session_logger(__name__, session_id)
        self.open_delay = config.CART_OPEN_DELAY if open_delay is None else open_delay
        self._is_open = False
        self._pending: Optional[asyncio.TimerHandle] = None
        self._listeners: List[VisibilityListener] = []

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def has_pending_open(self) -> bool:
        return self._pending is not None and not self._pending.cancelled()

    def set_open(self, value: bool) -> None:
        value = bool(value)
        if value == self._is_open:
            return
        self._is_open = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as e:
                self._log.warning(f"Visibility listener failed: {e}", exc_info=True)

    def open(self) -> None:
        self.set_open(True)

    def close(self) -> None:
        self.set_open(False)

    def schedule_open(self, delay: Optional[float] = None) -> Optional[asyncio.TimerHandle]:
        """
        Open the panel after `delay` seconds on the running event loop.

        A pending timer is replaced. Returns the timer handle, or None when
        no event loop is running (the panel then stays as it is).
        """
        delay = self.open_delay if delay is None else delay
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._log.warning("No running event loop, cart panel open skipped")
            return None

        self.cancel_pending()
        self._pending = loop.call_later(delay, self._fire)
        return self._pending

    def cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def on_change(self, listener: VisibilityListener) -> Callable[[], None]:
        """Register a visibility listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _fire(self) -> None:
        self._pending = None
        self.open()
