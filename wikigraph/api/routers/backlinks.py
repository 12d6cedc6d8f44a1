"""Backlink graph endpoints.

Routes
------
GET  /servers/{server_id}/articles/{slug}/backlinks            Incoming + outgoing
GET  /servers/{server_id}/articles/{slug}/backlinks/incoming   Articles linking here
GET  /servers/{server_id}/articles/{slug}/backlinks/outgoing   Articles linked from here
POST /servers/{server_id}/backlinks/rebuild                    Re-derive every edge
GET  /servers/{server_id}/backlinks/stats                      Link statistics
GET  /servers/{server_id}/backlinks/dangling                   Links to missing articles
GET  /servers/{server_id}/backlinks/orphans                    Unlinked articles

Unknown slugs yield empty lists rather than 404s.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from wikigraph.api.deps import get_maintainer, get_queries
from wikigraph.db.models import LinkedArticle

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class LinkedArticleResponse(BaseModel):
    id: str
    title: str
    slug: str


class BacklinksResponse(BaseModel):
    incoming: list[LinkedArticleResponse]
    outgoing: list[LinkedArticleResponse]


class RebuildResponse(BaseModel):
    server_id: str
    links_found: int


class DanglingLinkResponse(BaseModel):
    source_id: str
    source_slug: str
    missing_slug: str


def _linked(articles: list[LinkedArticle]) -> list[dict[str, Any]]:
    return [{"id": a.id, "title": a.title, "slug": a.slug} for a in articles]


# ---------------------------------------------------------------------------
# Per-article lookups
# ---------------------------------------------------------------------------

@router.get("/{server_id}/articles/{slug}/backlinks", response_model=BacklinksResponse)
def article_backlinks(server_id: str, slug: str, request: Request) -> dict[str, Any]:
    """Return both link directions for an article."""
    both = get_queries(request).get_both(server_id, slug)
    return {"incoming": _linked(both.incoming), "outgoing": _linked(both.outgoing)}


@router.get(
    "/{server_id}/articles/{slug}/backlinks/incoming",
    response_model=list[LinkedArticleResponse],
)
def incoming(server_id: str, slug: str, request: Request) -> list[dict[str, Any]]:
    return _linked(get_queries(request).get_incoming(server_id, slug))


@router.get(
    "/{server_id}/articles/{slug}/backlinks/outgoing",
    response_model=list[LinkedArticleResponse],
)
def outgoing(server_id: str, slug: str, request: Request) -> list[dict[str, Any]]:
    return _linked(get_queries(request).get_outgoing(server_id, slug))


# ---------------------------------------------------------------------------
# Server-wide operations
# ---------------------------------------------------------------------------

@router.post("/{server_id}/backlinks/rebuild", response_model=RebuildResponse)
def rebuild(server_id: str, request: Request) -> dict[str, Any]:
    """Clear and re-derive every backlink of the server from article content."""
    links_found = get_maintainer(request).rebuild_server(server_id)
    return {"server_id": server_id, "links_found": links_found}


@router.get("/{server_id}/backlinks/stats", response_model=dict[str, Any])
def stats(server_id: str, request: Request) -> dict[str, Any]:
    return get_queries(request).link_statistics(server_id)


@router.get("/{server_id}/backlinks/dangling", response_model=list[DanglingLinkResponse])
def dangling(server_id: str, request: Request) -> list[dict[str, Any]]:
    """List links whose target article has not been written yet."""
    return [
        {"source_id": d.source_id, "source_slug": d.source_slug, "missing_slug": d.missing_slug}
        for d in get_queries(request).find_dangling(server_id)
    ]


@router.get("/{server_id}/backlinks/orphans", response_model=list[LinkedArticleResponse])
def orphans(server_id: str, request: Request) -> list[dict[str, Any]]:
    return _linked(get_queries(request).find_orphans(server_id))
