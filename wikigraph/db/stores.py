"""Connection-bound adapters over the article and backlink tables.

The link services depend on these objects rather than on a connection, so a
caller wires them up once::

    conn = get_connection()
    maintainer = BacklinkMaintainer(SqliteArticleStore(conn), SqliteBacklinkStore(conn))
"""

from __future__ import annotations

import sqlite3
from typing import Iterable, Optional

from wikigraph.db import articles, backlinks
from wikigraph.db.models import Article, Backlink, LinkedArticle


class SqliteArticleStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def find_by_slugs(self, server_id: str, slugs: Iterable[str]) -> list[tuple[str, str]]:
        return articles.find_by_slugs(self.conn, server_id, slugs)

    def get_by_slug(self, server_id: str, slug: str) -> Optional[Article]:
        return articles.get_article_by_slug(self.conn, server_id, slug)

    def list_contents(self, server_id: str) -> list[tuple[str, str]]:
        return articles.list_contents(self.conn, server_id)

    def list_articles(self, server_id: str) -> list[Article]:
        return articles.list_articles(self.conn, server_id)


class SqliteBacklinkStore:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def delete_for_server(self, server_id: str) -> None:
        backlinks.delete_for_server(self.conn, server_id)

    def replace_outgoing(self, source_id: str, target_ids: Iterable[str]) -> None:
        backlinks.replace_outgoing(self.conn, source_id, target_ids)

    def incoming(self, target_id: str) -> list[LinkedArticle]:
        return backlinks.get_incoming(self.conn, target_id)

    def outgoing(self, source_id: str) -> list[LinkedArticle]:
        return backlinks.get_outgoing(self.conn, source_id)

    def list_for_server(self, server_id: str) -> list[Backlink]:
        return backlinks.list_backlinks(self.conn, server_id)

    def orphans(self, server_id: str) -> list[LinkedArticle]:
        return backlinks.get_orphans(self.conn, server_id)

    def link_counts(self, server_id: str, direction: str, limit: int = 10) -> list[dict]:
        return backlinks.get_link_counts(self.conn, server_id, direction, limit)
