"""Database initialisation and migration helpers.

``init_db(conn)`` is idempotent and safe to call on an existing database.
``migrate(conn)`` runs incremental schema changes tracked in a version table.
"""

from __future__ import annotations

import logging
import sqlite3

from wikigraph.config import settings

logger = logging.getLogger(__name__)

# Incremental migrations as ``(version, sql)`` pairs, applied in order.
MIGRATIONS: list[tuple[int, str]] = [
    # (1, "ALTER TABLE articles ADD COLUMN published INTEGER DEFAULT 1;"),
]


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes.

    Every DDL statement uses ``IF NOT EXISTS`` so calling this multiple times
    on the same database is safe.
    """
    sql = settings.schema_path.read_text(encoding="utf-8")
    with conn.lock:
        # executescript() issues an implicit COMMIT first, fine for DDL-only scripts.
        conn.executescript(sql)
        _ensure_version_table(conn)


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the internal schema-version tracking table if absent."""
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version  INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (unixepoch())
            )
            """
        )


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version (0 if none applied)."""
    with conn.lock:
        row = conn.execute(
            "SELECT COALESCE(MAX(version), 0) FROM schema_version"
        ).fetchone()
    return row[0] if row else 0


def migrate(
    conn: sqlite3.Connection,
    migrations: list[tuple[int, str]] | None = None,
) -> int:
    """Run any pending migrations and return the resulting schema version.

    Args:
        conn: Open DB connection with ``init_db`` already applied.
        migrations: Override the module-level ``MIGRATIONS`` list.
    """
    applied = current_version(conn)
    for version, sql in sorted(migrations if migrations is not None else MIGRATIONS):
        if version > applied:
            with conn.lock, conn:
                conn.execute(sql)
                conn.execute(
                    "INSERT INTO schema_version(version) VALUES (?)", (version,)
                )
            logger.info("Applied schema migration %d", version)
            applied = version
    return applied
