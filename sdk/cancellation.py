"""
Cooperative cancellation for search operations.

A Cancellable is shared between the host (which cancels superseded searches) and a
provider (which checks it and may listen for it while building result metadata).
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class OperationCancelled(Exception):
    """Raised when a search operation is cancelled via its Cancellable."""


class Cancellable:
    """
    Cancellation flag plus "on cancel" listeners.

    connect() on an already-cancelled token runs the callback immediately and
    returns 0 (no handler is kept). Listeners run outside the internal lock, on
    the thread that called cancel().
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._handlers: dict[int, Callable[[], None]] = {}
        self._next_id = 1

    def cancel(self) -> None:
        """Request cancellation. Only the first call notifies listeners."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            handlers = list(self._handlers.values())
        for handler in handlers:
            try:
                handler()
            except Exception as e:
                logger.exception("Cancel handler failed: %s", e)

    def is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def connect(self, callback: Callable[[], None]) -> int:
        """Register callback for cancellation. Returns a handler id for disconnect()."""
        with self._lock:
            if not self._cancelled:
                handler_id = self._next_id
                self._next_id += 1
                self._handlers[handler_id] = callback
                return handler_id
        callback()
        return 0

    def disconnect(self, handler_id: int) -> None:
        """Remove a handler. Unknown ids (including 0) are ignored."""
        with self._lock:
            self._handlers.pop(handler_id, None)

    def raise_if_cancelled(self, message: str = "Operation Cancelled") -> None:
        if self.is_cancelled():
            raise OperationCancelled(message)
