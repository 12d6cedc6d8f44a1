"""CRUD endpoints for server-scoped articles.

Every write re-runs backlink processing for the written article.

Routes
------
POST   /servers/{server_id}/articles          Create an article
GET    /servers/{server_id}/articles          List the server's articles
GET    /servers/{server_id}/articles/{slug}   Fetch a single article
PUT    /servers/{server_id}/articles/{slug}   Update title / content / slug
DELETE /servers/{server_id}/articles/{slug}   Delete an article (edges cascade)
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field

from wikigraph.api.deps import get_maintainer
from wikigraph.db.articles import (
    SLUG_MAX_LENGTH,
    create_article,
    delete_article,
    get_article_by_slug,
    list_articles,
    update_article,
)
from wikigraph.db.models import Article

router = APIRouter()

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 200
CONTENT_MIN_LENGTH = 10
CONTENT_MAX_LENGTH = 50_000
SLUG_PATTERN = r"^[a-z0-9-]+$"


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class ArticleCreate(BaseModel):
    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    content: str = Field(min_length=CONTENT_MIN_LENGTH, max_length=CONTENT_MAX_LENGTH)
    slug: Optional[str] = Field(default=None, max_length=SLUG_MAX_LENGTH, pattern=SLUG_PATTERN)


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(
        default=None, min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH
    )
    content: Optional[str] = Field(
        default=None, min_length=CONTENT_MIN_LENGTH, max_length=CONTENT_MAX_LENGTH
    )
    slug: Optional[str] = Field(default=None, max_length=SLUG_MAX_LENGTH, pattern=SLUG_PATTERN)


class ArticleResponse(BaseModel):
    id: str
    server_id: str
    slug: str
    title: str
    content: str
    created_at: int
    updated_at: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _article_response(article: Article) -> dict[str, Any]:
    return {
        "id": article.id,
        "server_id": article.server_id,
        "slug": article.slug,
        "title": article.title,
        "content": article.content,
        "created_at": article.created_at,
        "updated_at": article.updated_at,
    }


def _get_or_404(conn: sqlite3.Connection, server_id: str, slug: str) -> Article:
    article = get_article_by_slug(conn, server_id, slug)
    if article is None:
        raise HTTPException(status_code=404, detail=f"Article not found: {slug!r}")
    return article


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/{server_id}/articles", response_model=ArticleResponse, status_code=201)
def create(server_id: str, body: ArticleCreate, request: Request) -> dict[str, Any]:
    """Create an article and index its outgoing links."""
    conn = request.app.state.db
    try:
        article = create_article(
            conn,
            server_id=server_id,
            title=body.title,
            content=body.content,
            slug=body.slug,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except sqlite3.IntegrityError as exc:
        raise HTTPException(
            status_code=409, detail=f"Slug already exists in server {server_id!r}."
        ) from exc

    get_maintainer(request).reprocess(server_id, article.id, article.content)
    return _article_response(article)


@router.get("/{server_id}/articles", response_model=list[ArticleResponse])
def list_all(server_id: str, request: Request) -> list[dict[str, Any]]:
    """Return every article of the server, most recently updated first."""
    conn = request.app.state.db
    return [_article_response(a) for a in list_articles(conn, server_id)]


@router.get("/{server_id}/articles/{slug}", response_model=ArticleResponse)
def get_one(server_id: str, slug: str, request: Request) -> dict[str, Any]:
    """Fetch a single article by slug."""
    conn = request.app.state.db
    return _article_response(_get_or_404(conn, server_id, slug))


@router.put("/{server_id}/articles/{slug}", response_model=ArticleResponse)
def update(
    server_id: str, slug: str, body: ArticleUpdate, request: Request
) -> dict[str, Any]:
    """Update an article; links are re-indexed when the content changes."""
    conn = request.app.state.db
    existing = _get_or_404(conn, server_id, slug)

    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=422, detail="No fields provided to update.")
    try:
        article = update_article(conn, existing.id, **updates)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except sqlite3.IntegrityError as exc:
        raise HTTPException(
            status_code=409, detail=f"Slug already exists in server {server_id!r}."
        ) from exc

    if "content" in updates:
        get_maintainer(request).reprocess(server_id, article.id, article.content)
    return _article_response(article)


@router.delete("/{server_id}/articles/{slug}")
def remove(server_id: str, slug: str, request: Request) -> Response:
    """Delete an article together with every backlink touching it."""
    conn = request.app.state.db
    article = _get_or_404(conn, server_id, slug)
    delete_article(conn, article.id)
    return Response(status_code=204)
