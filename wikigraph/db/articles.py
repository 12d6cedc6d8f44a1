"""CRUD operations for the ``articles`` table.

Articles are scoped by ``server_id``; a slug is unique only within its server.
"""

from __future__ import annotations

import re
import sqlite3
import uuid
from time import time
from typing import Any, Iterable, Optional

from wikigraph.db.models import Article

SLUG_MAX_LENGTH = 200

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_article(row: sqlite3.Row) -> Article:
    return Article(
        id=row["id"],
        server_id=row["server_id"],
        slug=row["slug"],
        title=row["title"],
        content=row["content"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def generate_slug(title: str) -> str:
    """Turn a title into a URL-safe slug.

    Example:
        >>> generate_slug("  Getting Started: Roles & Permissions! ")
        'getting-started-roles-permissions'
    """
    slug = _SLUG_STRIP.sub("-", title.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH].rstrip("-")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_article(
    conn: sqlite3.Connection,
    server_id: str,
    title: str,
    content: str = "",
    slug: Optional[str] = None,
    article_id: Optional[str] = None,
) -> Article:
    """Insert a new article and return it.

    Args:
        conn: Open DB connection.
        server_id: Namespace the article lives in.
        title: Human-readable title.
        content: Markdown body, scanned for wiki links.
        slug: Explicit slug; generated from *title* when omitted.
        article_id: Explicit UUID override (auto-generated when omitted).

    Raises:
        ValueError: If no slug is given and none can be derived from *title*.
        sqlite3.IntegrityError: If *slug* already exists in *server_id*.
    """
    slug = slug or generate_slug(title)
    if not slug:
        raise ValueError(f"Cannot derive a slug from title {title!r}")

    aid = article_id or str(uuid.uuid4())
    now = int(time())

    with conn.lock, conn:
        conn.execute(
            """
            INSERT INTO articles (id, server_id, slug, title, content, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (aid, server_id, slug, title, content, now, now),
        )

    return get_article(conn, aid)  # type: ignore[return-value]


def get_article(conn: sqlite3.Connection, article_id: str) -> Optional[Article]:
    """Fetch a single article by its UUID.  Returns ``None`` if not found."""
    with conn.lock:
        row = conn.execute(
            "SELECT * FROM articles WHERE id = ?", (article_id,)
        ).fetchone()
    return _row_to_article(row) if row else None


def get_article_by_slug(
    conn: sqlite3.Connection, server_id: str, slug: str
) -> Optional[Article]:
    """Fetch an article by ``(server_id, slug)``.  Returns ``None`` if not found."""
    with conn.lock:
        row = conn.execute(
            "SELECT * FROM articles WHERE server_id = ? AND slug = ?",
            (server_id, slug),
        ).fetchone()
    return _row_to_article(row) if row else None


def update_article(conn: sqlite3.Connection, article_id: str, **kwargs: Any) -> Article:
    """Update one or more fields on an article.

    Allowed keyword arguments: ``title``, ``content``, ``slug``.
    ``updated_at`` is always refreshed automatically.

    Raises:
        ValueError: If ``article_id`` does not exist or no valid fields are given.
        sqlite3.IntegrityError: If a new ``slug`` collides within the server.
    """
    if get_article(conn, article_id) is None:
        raise ValueError(f"Article not found: {article_id!r}")

    allowed = {"title", "content", "slug"}
    updates: dict[str, Any] = {}
    for key, value in kwargs.items():
        if key not in allowed:
            raise ValueError(f"Cannot update field {key!r}")
        updates[key] = value

    if not updates:
        raise ValueError("No valid fields provided to update_article()")

    updates["updated_at"] = int(time())
    set_clause = ", ".join(f"{col} = ?" for col in updates)
    values = list(updates.values()) + [article_id]

    with conn.lock, conn:
        conn.execute(
            f"UPDATE articles SET {set_clause} WHERE id = ?", values  # noqa: S608
        )

    return get_article(conn, article_id)  # type: ignore[return-value]


def delete_article(conn: sqlite3.Connection, article_id: str) -> None:
    """Delete an article (and every backlink touching it, via CASCADE).

    This is a no-op if the article does not exist.
    """
    with conn.lock, conn:
        conn.execute("DELETE FROM articles WHERE id = ?", (article_id,))


def list_articles(conn: sqlite3.Connection, server_id: str) -> list[Article]:
    """Return every article of *server_id*, most recently updated first."""
    with conn.lock:
        rows = conn.execute(
            "SELECT * FROM articles WHERE server_id = ? ORDER BY updated_at DESC, rowid DESC",
            (server_id,),
        ).fetchall()
    return [_row_to_article(r) for r in rows]


def find_by_slugs(
    conn: sqlite3.Connection, server_id: str, slugs: Iterable[str]
) -> list[tuple[str, str]]:
    """Return ``(id, slug)`` for each of *slugs* that exists in *server_id*.

    Slugs with no matching article are simply absent from the result.
    """
    wanted = list(slugs)
    if not wanted:
        return []
    placeholders = ",".join("?" for _ in wanted)
    with conn.lock:
        rows = conn.execute(
            f"""
            SELECT id, slug FROM articles
            WHERE  server_id = ? AND slug IN ({placeholders})
            """,  # noqa: S608
            [server_id, *wanted],
        ).fetchall()
    return [(r["id"], r["slug"]) for r in rows]


def list_contents(conn: sqlite3.Connection, server_id: str) -> list[tuple[str, str]]:
    """Return ``(id, content)`` for every article of *server_id*."""
    with conn.lock:
        rows = conn.execute(
            "SELECT id, content FROM articles WHERE server_id = ? ORDER BY rowid",
            (server_id,),
        ).fetchall()
    return [(r["id"], r["content"]) for r in rows]
