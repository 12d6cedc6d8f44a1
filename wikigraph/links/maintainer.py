"""Backlink graph maintenance.

:class:`BacklinkMaintainer` keeps each article's outgoing edge set in line
with its content.  An article owns its outgoing edges: reprocessing replaces
the whole set, there is no incremental diffing.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Iterable, Optional, Protocol

from wikigraph.db.models import Article, Backlink, LinkedArticle
from wikigraph.links.extractor import extract_wiki_links

logger = logging.getLogger(__name__)


class ArticleStore(Protocol):
    def find_by_slugs(self, server_id: str, slugs: Iterable[str]) -> list[tuple[str, str]]: ...

    def get_by_slug(self, server_id: str, slug: str) -> Optional[Article]: ...

    def list_contents(self, server_id: str) -> list[tuple[str, str]]: ...

    def list_articles(self, server_id: str) -> list[Article]: ...


class BacklinkStore(Protocol):
    def delete_for_server(self, server_id: str) -> None: ...

    def replace_outgoing(self, source_id: str, target_ids: Iterable[str]) -> None: ...

    def incoming(self, target_id: str) -> list[LinkedArticle]: ...

    def outgoing(self, source_id: str) -> list[LinkedArticle]: ...

    def list_for_server(self, server_id: str) -> list[Backlink]: ...

    def orphans(self, server_id: str) -> list[LinkedArticle]: ...

    def link_counts(self, server_id: str, direction: str, limit: int = 10) -> list[dict]: ...


class BacklinkMaintainer:
    """Reconcile outgoing backlinks with article content.

    Reprocessing of a single ``(server_id, article_id)`` is serialized through
    an in-process lock, so two concurrent writers never interleave their
    delete/insert steps.  Different articles proceed independently.
    """

    def __init__(self, articles: ArticleStore, backlinks: BacklinkStore) -> None:
        self.articles = articles
        self.backlinks = backlinks
        # Entries vanish once no caller holds a reference to their lock.
        self._locks: weakref.WeakValueDictionary[tuple[str, str], threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    def _lock_for(self, server_id: str, article_id: str) -> threading.Lock:
        key = (server_id, article_id)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def reprocess(self, server_id: str, source_article_id: str, content: str) -> None:
        """Replace the outgoing edges of *source_article_id* from *content*.

        Candidate slugs that do not resolve to an article in *server_id* are
        dropped without error.  Store errors propagate unchanged.
        """
        slugs = extract_wiki_links(content)

        with self._lock_for(server_id, source_article_id):
            resolved = self.articles.find_by_slugs(server_id, slugs) if slugs else []
            ids_by_slug = {slug: article_id for article_id, slug in resolved}
            # Edges are inserted in document order.
            target_ids = [ids_by_slug[s] for s in slugs if s in ids_by_slug]
            self.backlinks.replace_outgoing(source_article_id, target_ids)

        if len(target_ids) < len(slugs):
            logger.debug(
                "Unresolved links in article %s: %s",
                source_article_id,
                [s for s in slugs if s not in ids_by_slug],
            )

        logger.debug(
            "Reprocessed article %s: %d candidate(s), %d edge(s)",
            source_article_id,
            len(slugs),
            len(target_ids),
        )

    def rebuild_server(self, server_id: str) -> int:
        """Rebuild every backlink of *server_id* from article content.

        Returns:
            The total number of candidate links extracted across all
            articles, dangling references included.

        An error while reprocessing one article aborts the rebuild and
        propagates.  Edges already cleared stay cleared; running the rebuild
        again converges to the same result.
        """
        contents = self.articles.list_contents(server_id)
        self.backlinks.delete_for_server(server_id)

        total_links = 0
        for article_id, content in contents:
            self.reprocess(server_id, article_id, content)
            total_links += len(extract_wiki_links(content))

        logger.info(
            "Rebuilt backlinks for server %s: %d article(s), %d link(s) found",
            server_id,
            len(contents),
            total_links,
        )
        return total_links
