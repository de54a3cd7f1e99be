"""
Settings repository: string key/value store in SQLite with change notification.
The engine selection is stored here as an integer under "search-engine".
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Callable

from persistence.database import transaction

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SettingsRepo:
    """
    Read and write settings. Listeners registered with connect(key, cb) get
    cb(key, value) after a set() that actually changes the stored value.
    """

    def __init__(
        self,
        conn_factory: Callable[[], sqlite3.Connection],
        defaults: dict[str, str] | None = None,
    ) -> None:
        self._conn_factory = conn_factory
        self._defaults = dict(defaults or {})
        self._lock = threading.Lock()
        self._listeners: dict[int, tuple[str, Callable[[str, str], None]]] = {}
        self._next_id = 1

    def get(self, key: str) -> str | None:
        """Return the stored value for key, the default if unset, or None."""

        try:
            with transaction(self._conn_factory) as conn:
                row = conn.execute(
                    "SELECT value FROM settings WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.exception("settings get %s failed: %s", key, e)
            raise
        return row[0] if row else self._defaults.get(key)

    def set(self, key: str, value: str) -> None:
        """Store value for key and notify listeners if it changed."""
        value = str(value)
        previous = self.get(key)

        try:
            with transaction(self._conn_factory) as conn:
                conn.execute(
                    """
                    INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, value, _now_iso()),
                )
        except sqlite3.Error as e:
            logger.exception("settings set %s failed: %s", key, e)
            raise
        if previous != value:
            logger.debug("Setting %s changed: %r -> %r", key, previous, value)
            self._notify(key, value)

    def get_int(self, key: str, default: int = 0) -> int:
        """Return the setting as int; unset or non-numeric values give default."""
        value = self.get(key)
        if value is None or not value.strip():
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("Setting %s is not an integer (%r), using %d", key, value, default)
            return default

    def set_int(self, key: str, value: int) -> None:
        self.set(key, str(int(value)))

    def connect(self, key: str, callback: Callable[[str, str], None]) -> int:
        """Call callback(key, value) whenever key changes. Returns a handler id."""
        with self._lock:
            handler_id = self._next_id
            self._next_id += 1
            self._listeners[handler_id] = (key, callback)
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        with self._lock:
            self._listeners.pop(handler_id, None)

    def _notify(self, key: str, value: str) -> None:
        with self._lock:
            callbacks = [cb for k, cb in self._listeners.values() if k == key]
        for cb in callbacks:
            cb(key, value)
