"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, opens a single SQLite connection
(shared across all requests via ``request.app.state.db``) and initialises the
schema.  On shutdown it closes the connection cleanly.

Routers
-------
    /servers   article CRUD and backlink lookups, scoped per server
    /links     stateless link extraction
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wikigraph import __version__
from wikigraph.config import configure_logging, settings
from wikigraph.db import get_connection, init_db

from wikigraph.api.routers import articles as articles_router
from wikigraph.api.routers import backlinks as backlinks_router
from wikigraph.api.routers import links as links_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    configure_logging()
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    logger.info("Database ready at %s", settings.db_path)
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title=settings.api_title,
        description=(
            "REST interface for server-scoped wiki articles. "
            "Exposes article CRUD, wiki-link extraction, and the backlink "
            "graph (incoming / outgoing links, rebuilds, link-health reports)."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(articles_router.router, prefix="/servers", tags=["articles"])
    app.include_router(backlinks_router.router, prefix="/servers", tags=["backlinks"])
    app.include_router(links_router.router, prefix="/links", tags=["links"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn wikigraph.api.app:app --reload
app = create_app()
