"""wikigraph CLI: entry-point for all wiki graph operations.

Usage:
    python cli/main.py --help

Command groups:
    db         → schema initialisation and migrations
    server     → select the active server (wiki namespace)
    article    → create / list / show articles
    backlinks  → show, rebuild and audit the backlink graph
    links      → extract wiki links from arbitrary text
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from wikigraph.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from wikigraph.config import configure_logging, settings
from wikigraph.db import get_connection, init_db
from wikigraph.db.migrations import current_version, migrate
from wikigraph.links import extract_wiki_links

from cli.commands.article import article_app
from cli.commands.backlinks import backlinks_app
from cli.commands.server import server_app

app = typer.Typer(
    name="wikigraph",
    help="wikigraph CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override WIKIGRAPH_LOG_LEVEL."),
) -> None:
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


@db_app.command("migrate")
def db_migrate() -> None:
    """Apply any pending schema migrations."""
    conn = get_connection()
    init_db(conn)
    try:
        before = current_version(conn)
        after = migrate(conn)
    finally:
        conn.close()
    typer.echo(f"[db migrate] Schema version {before} → {after}")


# ---------------------------------------------------------------------------
# Link extraction
# ---------------------------------------------------------------------------
links_app = typer.Typer(help="Wiki-link utilities.", no_args_is_help=True)
app.add_typer(links_app, name="links")


@links_app.command("extract")
def links_extract(
    text: Optional[str] = typer.Argument(None, help="Text to scan."),
    file: Optional[Path] = typer.Option(None, "--file", help="Scan a file instead."),
) -> None:
    """Print the slugs that a piece of content links to, one per line."""
    if file is not None:
        text = file.read_text(encoding="utf-8")
    if text is None:
        typer.echo("[links extract] Provide TEXT or --file.")
        raise typer.Exit(1)

    slugs = extract_wiki_links(text)
    if not slugs:
        typer.echo("[links extract] No links found.")
        return
    for slug in slugs:
        typer.echo(slug)


app.add_typer(server_app, name="server")
app.add_typer(article_app, name="article")
app.add_typer(backlinks_app, name="backlinks")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
