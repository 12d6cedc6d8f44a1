"""Stateless link extraction endpoint.

Routes
------
POST /links/extract    Return the candidate slugs found in a piece of content
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from wikigraph.links.extractor import extract_wiki_links

router = APIRouter()


class ExtractRequest(BaseModel):
    content: str


class ExtractResponse(BaseModel):
    slugs: list[str]


@router.post("/extract", response_model=ExtractResponse)
def extract(body: ExtractRequest) -> dict[str, list[str]]:
    """Preview which slugs a draft would link to, without touching the store."""
    return {"slugs": extract_wiki_links(body.content)}
