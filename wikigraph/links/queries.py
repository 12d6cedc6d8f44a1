"""Read-only views over the backlink graph, addressed by article slug."""

from __future__ import annotations

from typing import Any

from wikigraph.db.models import ArticleBacklinks, DanglingLink, LinkedArticle
from wikigraph.links.extractor import extract_wiki_links
from wikigraph.links.maintainer import ArticleStore, BacklinkStore


class BacklinkQueries:
    """Incoming / outgoing lookups plus link-health reports for a server.

    An unknown slug is not an error: lookups return empty collections.
    Results come back in edge insertion order.
    """

    def __init__(self, articles: ArticleStore, backlinks: BacklinkStore) -> None:
        self.articles = articles
        self.backlinks = backlinks

    def get_incoming(self, server_id: str, slug: str) -> list[LinkedArticle]:
        """Articles whose content links to *slug*."""
        article = self.articles.get_by_slug(server_id, slug)
        if article is None:
            return []
        return self.backlinks.incoming(article.id)

    def get_outgoing(self, server_id: str, slug: str) -> list[LinkedArticle]:
        """Articles that *slug*'s content links to."""
        article = self.articles.get_by_slug(server_id, slug)
        if article is None:
            return []
        return self.backlinks.outgoing(article.id)

    def get_both(self, server_id: str, slug: str) -> ArticleBacklinks:
        return ArticleBacklinks(
            incoming=self.get_incoming(server_id, slug),
            outgoing=self.get_outgoing(server_id, slug),
        )

    # ------------------------------------------------------------------
    # Link health
    # ------------------------------------------------------------------

    def find_orphans(self, server_id: str) -> list[LinkedArticle]:
        """Articles with neither incoming nor outgoing links."""
        return self.backlinks.orphans(server_id)

    def find_dangling(self, server_id: str) -> list[DanglingLink]:
        """Every link in *server_id* whose target article does not exist yet."""
        articles = self.articles.list_articles(server_id)
        existing = {a.slug for a in articles}

        dangling: list[DanglingLink] = []
        for article in sorted(articles, key=lambda a: a.slug):
            for slug in extract_wiki_links(article.content):
                if slug not in existing:
                    dangling.append(
                        DanglingLink(
                            source_id=article.id,
                            source_slug=article.slug,
                            missing_slug=slug,
                        )
                    )
        return dangling

    def link_statistics(self, server_id: str) -> dict[str, Any]:
        """Summary figures for the server's link graph."""
        total_articles = len(self.articles.list_contents(server_id))
        total_links = len(self.backlinks.list_for_server(server_id))

        return {
            "total_articles": total_articles,
            "total_links": total_links,
            "average_links_per_article": (
                total_links / total_articles if total_articles > 0 else 0
            ),
            "most_linked_articles": self.backlinks.link_counts(server_id, "incoming"),
            "most_linking_articles": self.backlinks.link_counts(server_id, "outgoing"),
            "orphaned_articles_count": len(self.find_orphans(server_id)),
            "dangling_links_count": len(self.find_dangling(server_id)),
        }
