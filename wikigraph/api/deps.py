"""Per-request access to the link services.

The services are cached on ``app.state`` so every request shares one
:class:`BacklinkMaintainer` (and with it the per-article lock map).  They are
rebuilt whenever ``app.state.db`` is swapped for another connection.
"""

from __future__ import annotations

import threading

from fastapi import Request

from wikigraph.db.stores import SqliteArticleStore, SqliteBacklinkStore
from wikigraph.links import BacklinkMaintainer, BacklinkQueries

_build_lock = threading.Lock()


def _ensure_services(request: Request) -> None:
    state = request.app.state
    conn = state.db
    with _build_lock:
        if getattr(state, "services_conn", None) is not conn:
            articles = SqliteArticleStore(conn)
            backlinks = SqliteBacklinkStore(conn)
            state.maintainer = BacklinkMaintainer(articles, backlinks)
            state.queries = BacklinkQueries(articles, backlinks)
            state.services_conn = conn


def get_maintainer(request: Request) -> BacklinkMaintainer:
    _ensure_services(request)
    return request.app.state.maintainer


def get_queries(request: Request) -> BacklinkQueries:
    _ensure_services(request)
    return request.app.state.queries
