"""SQLite connection factory.

Usage::

    from wikigraph.db.connection import get_connection

    with get_connection() as conn:
        cursor = conn.execute("SELECT 1")

The API shares one connection across its worker threads.  Every helper in
``wikigraph.db`` holds ``conn.lock`` around its statements, so a transaction
opened by one thread is never committed or read half-way by another.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Optional

from wikigraph.config import settings


class LockedConnection(sqlite3.Connection):
    """A :class:`sqlite3.Connection` carrying the lock that serializes its users."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.lock = threading.RLock()


def get_connection(db_path: Optional[Path] = None) -> LockedConnection:
    """Open and configure a SQLite connection.

    Steps performed on every new connection:
    1. Enable ``PRAGMA foreign_keys = ON`` so backlinks cascade with articles.
    2. Switch to WAL journal mode for concurrent readers.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.

    Returns:
        A configured :class:`LockedConnection` with ``row_factory`` set to
        :class:`sqlite3.Row` so columns can be accessed by name.
    """
    path = db_path or settings.db_path

    # Create parent directory if needed (no-op for `:memory:`)
    if str(path) != ":memory:":
        settings.ensure_workspace()

    conn = sqlite3.connect(str(path), check_same_thread=False, factory=LockedConnection)
    conn.row_factory = sqlite3.Row

    # PRAGMAs
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")

    return conn
