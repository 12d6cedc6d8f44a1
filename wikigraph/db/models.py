"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Article:
    id: str
    server_id: str
    slug: str
    title: str
    content: str
    created_at: int
    updated_at: int


@dataclass
class Backlink:
    source_article_id: str
    target_article_id: str
    created_at: int


@dataclass
class LinkedArticle:
    """The ``(id, title, slug)`` view of an article at the far end of an edge."""

    id: str
    title: str
    slug: str


@dataclass
class ArticleBacklinks:
    incoming: list[LinkedArticle] = field(default_factory=list)
    outgoing: list[LinkedArticle] = field(default_factory=list)


@dataclass
class DanglingLink:
    """A candidate slug in *source_slug*'s content with no matching article."""

    source_id: str
    source_slug: str
    missing_slug: str
