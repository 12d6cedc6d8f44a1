"""Utilities for rendering the backlink graph in the CLI."""

from __future__ import annotations

from wikigraph.db.models import Article, ArticleBacklinks, LinkedArticle


def _branch(label: str, articles: list[LinkedArticle], is_last: bool) -> list[str]:
    connector = "└── " if is_last else "├── "
    child_prefix = "    " if is_last else "│   "

    lines = [f"{connector}{label} ({len(articles)})"]
    for i, a in enumerate(articles):
        leaf = "└── " if i == len(articles) - 1 else "├── "
        lines.append(f"{child_prefix}{leaf}{a.title} [{a.slug}]")
    return lines


def render_backlinks(article: Article, links: ArticleBacklinks) -> str:
    """Render an article's incoming and outgoing links as an ASCII tree.

    Example::

        Getting Started [getting-started]
        ├── ← incoming (1)
        │   └── FAQ [faq]
        └── → outgoing (0)
    """
    lines = [f"{article.title} [{article.slug}]"]
    lines.extend(_branch("← incoming", links.incoming, is_last=False))
    lines.extend(_branch("→ outgoing", links.outgoing, is_last=True))
    return "\n".join(lines)
