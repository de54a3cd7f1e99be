"""
SQLite file holding the settings table.

The server and the prefs CLI may open the file at the same time, so every
connection runs in WAL mode with a busy timeout. SettingsRepo runs each read or
write inside transaction().
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"
BUSY_TIMEOUT_SEC = 5.0


def get_connection(db_path: str) -> sqlite3.Connection:
    """Open db_path in WAL mode. Caller must close it."""
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_SEC, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


@contextmanager
def transaction(
    connector: Callable[[], sqlite3.Connection],
) -> Iterator[sqlite3.Connection]:
    """
    Yield a fresh connection from connector. Commits when the block exits
    normally, rolls back when it raises, and closes the connection either way.
    """
    conn = connector()
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_database(db_path: str) -> None:
    """Create the file (and its directory) if missing and apply schema.sql. Idempotent."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    with transaction(lambda: get_connection(db_path)) as conn:
        conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
    logger.info("Settings schema ready in %s", db_path)
