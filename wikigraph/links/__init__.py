"""Wiki-link extraction and backlink graph services.

Public re-exports so callers can write::

    from wikigraph.links import BacklinkMaintainer, BacklinkQueries, extract_wiki_links
"""

from wikigraph.links.extractor import extract_wiki_links
from wikigraph.links.maintainer import ArticleStore, BacklinkMaintainer, BacklinkStore
from wikigraph.links.queries import BacklinkQueries

__all__ = [
    "extract_wiki_links",
    "ArticleStore",
    "BacklinkStore",
    "BacklinkMaintainer",
    "BacklinkQueries",
]
