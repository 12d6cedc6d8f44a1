"""Database layer package.

Public re-exports so callers can write::

    from wikigraph.db import get_connection, init_db
    from wikigraph.db import articles, backlinks
"""

from wikigraph.db.connection import get_connection
from wikigraph.db.migrations import init_db
from wikigraph.db import articles, backlinks

__all__ = ["get_connection", "init_db", "articles", "backlinks"]
