"""Wiki-link extraction and backlink graph maintenance for server-scoped wikis."""

__version__ = "0.1.0"
