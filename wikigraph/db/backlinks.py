"""Operations on the ``backlinks`` table."""

from __future__ import annotations

import sqlite3
from time import time
from typing import Iterable

from wikigraph.db.models import Backlink, LinkedArticle


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _delete_outgoing(conn: sqlite3.Connection, source_id: str) -> None:
    conn.execute(
        "DELETE FROM backlinks WHERE source_article_id = ?", (source_id,)
    )


def _insert(conn: sqlite3.Connection, source_id: str, target_ids: Iterable[str]) -> None:
    now = int(time())
    conn.executemany(
        """
        INSERT OR IGNORE INTO backlinks (source_article_id, target_article_id, created_at)
        VALUES (?, ?, ?)
        """,
        [(source_id, target_id, now) for target_id in target_ids],
    )


def _row_to_linked(row: sqlite3.Row) -> LinkedArticle:
    return LinkedArticle(id=row["id"], title=row["title"], slug=row["slug"])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def delete_outgoing(conn: sqlite3.Connection, source_id: str) -> None:
    """Delete every edge whose source is *source_id*."""
    with conn.lock, conn:
        _delete_outgoing(conn, source_id)


def delete_for_server(conn: sqlite3.Connection, server_id: str) -> None:
    """Delete every edge whose source article belongs to *server_id*."""
    with conn.lock, conn:
        conn.execute(
            """
            DELETE FROM backlinks
            WHERE  source_article_id IN (SELECT id FROM articles WHERE server_id = ?)
            """,
            (server_id,),
        )


def insert_backlinks(
    conn: sqlite3.Connection, source_id: str, target_ids: Iterable[str]
) -> None:
    """Create one edge per target.

    Uses ``INSERT OR IGNORE`` so an existing ``(source, target)`` pair is
    silently skipped.
    """
    with conn.lock, conn:
        _insert(conn, source_id, target_ids)


def replace_outgoing(
    conn: sqlite3.Connection, source_id: str, target_ids: Iterable[str]
) -> None:
    """Swap the outgoing edge set of *source_id* for *target_ids*.

    The delete and the insert share one transaction held under ``conn.lock``:
    readers on any thread see either the old set or the new one, and a
    failure rolls both back.
    """
    with conn.lock, conn:
        _delete_outgoing(conn, source_id)
        _insert(conn, source_id, target_ids)


def get_incoming(conn: sqlite3.Connection, target_id: str) -> list[LinkedArticle]:
    """Return the source articles of every edge pointing at *target_id*."""
    with conn.lock:
        rows = conn.execute(
            """
            SELECT a.id, a.title, a.slug
            FROM   backlinks b
            JOIN   articles a ON a.id = b.source_article_id
            WHERE  b.target_article_id = ?
            ORDER  BY b.rowid
            """,
            (target_id,),
        ).fetchall()
    return [_row_to_linked(r) for r in rows]


def get_outgoing(conn: sqlite3.Connection, source_id: str) -> list[LinkedArticle]:
    """Return the target articles of every edge leaving *source_id*."""
    with conn.lock:
        rows = conn.execute(
            """
            SELECT a.id, a.title, a.slug
            FROM   backlinks b
            JOIN   articles a ON a.id = b.target_article_id
            WHERE  b.source_article_id = ?
            ORDER  BY b.rowid
            """,
            (source_id,),
        ).fetchall()
    return [_row_to_linked(r) for r in rows]


def list_backlinks(conn: sqlite3.Connection, server_id: str) -> list[Backlink]:
    """Return every edge whose source article belongs to *server_id*."""
    with conn.lock:
        rows = conn.execute(
            """
            SELECT b.source_article_id, b.target_article_id, b.created_at
            FROM   backlinks b
            JOIN   articles a ON a.id = b.source_article_id
            WHERE  a.server_id = ?
            ORDER  BY b.rowid
            """,
            (server_id,),
        ).fetchall()
    return [
        Backlink(
            source_article_id=r["source_article_id"],
            target_article_id=r["target_article_id"],
            created_at=r["created_at"],
        )
        for r in rows
    ]


def get_orphans(conn: sqlite3.Connection, server_id: str) -> list[LinkedArticle]:
    """Return articles of *server_id* with no incoming and no outgoing edges."""
    with conn.lock:
        rows = conn.execute(
            """
            SELECT a.id, a.title, a.slug
            FROM   articles a
            WHERE  a.server_id = ?
              AND  NOT EXISTS (SELECT 1 FROM backlinks b WHERE b.source_article_id = a.id)
              AND  NOT EXISTS (SELECT 1 FROM backlinks b WHERE b.target_article_id = a.id)
            ORDER  BY a.title
            """,
            (server_id,),
        ).fetchall()
    return [_row_to_linked(r) for r in rows]


def get_link_counts(
    conn: sqlite3.Connection, server_id: str, direction: str, limit: int = 10
) -> list[dict]:
    """Rank articles of *server_id* by edge count.

    Args:
        direction: ``"incoming"`` (most linked-to) or ``"outgoing"``
            (most linking).
    """
    if direction == "incoming":
        column = "target_article_id"
    elif direction == "outgoing":
        column = "source_article_id"
    else:
        raise ValueError(f"Unknown direction {direction!r}")

    with conn.lock:
        rows = conn.execute(
            f"""
            SELECT a.id, a.title, a.slug, COUNT(*) AS link_count
            FROM   backlinks b
            JOIN   articles a ON a.id = b.{column}
            WHERE  a.server_id = ?
            GROUP  BY a.id
            ORDER  BY link_count DESC, a.title
            LIMIT  ?
            """,  # noqa: S608
            (server_id, limit),
        ).fetchall()
    return [
        {"id": r["id"], "title": r["title"], "slug": r["slug"], "count": r["link_count"]}
        for r in rows
    ]
