"""Article management commands."""

import sqlite3
from pathlib import Path
from typing import Optional

import typer

from wikigraph.db import get_connection, init_db
from wikigraph.db.articles import create_article, get_article_by_slug, list_articles
from wikigraph.db.stores import SqliteArticleStore, SqliteBacklinkStore
from wikigraph.links import BacklinkMaintainer

from cli.context import resolve_server

article_app = typer.Typer(help="Create and browse wiki articles.")


@article_app.command("create")
def article_create(
    title: str = typer.Option(..., help="Article title."),
    content: Optional[str] = typer.Option(None, help="Markdown content."),
    file: Optional[Path] = typer.Option(None, "--file", help="Read content from a file."),
    slug: Optional[str] = typer.Option(None, help="Explicit slug (derived from title otherwise)."),
    server: Optional[str] = typer.Option(None, "--server", help="Server ID."),
) -> None:
    """Create an article and index its outgoing links."""
    server_id = resolve_server(server)
    if file is not None:
        content = file.read_text(encoding="utf-8")

    conn = get_connection()
    init_db(conn)
    try:
        try:
            article = create_article(
                conn, server_id=server_id, title=title, content=content or "", slug=slug
            )
        except (ValueError, sqlite3.IntegrityError) as exc:
            typer.echo(f"❌ Could not create article: {exc}")
            raise typer.Exit(code=1)

        maintainer = BacklinkMaintainer(SqliteArticleStore(conn), SqliteBacklinkStore(conn))
        maintainer.reprocess(server_id, article.id, article.content)
        typer.echo(f"✅ Article created: {article.title} [{article.slug}] ({article.id})")
    finally:
        conn.close()


@article_app.command("list")
def article_list(
    server: Optional[str] = typer.Option(None, "--server", help="Server ID."),
) -> None:
    """List the articles of a server."""
    server_id = resolve_server(server)
    conn = get_connection()
    init_db(conn)
    try:
        articles = list_articles(conn, server_id)
        if not articles:
            typer.echo("No articles found.")
            return
        for a in articles:
            typer.echo(f"  {a.slug} \t{a.title!r} \t[{a.id}]")
    finally:
        conn.close()


@article_app.command("show")
def article_show(
    slug: str = typer.Argument(..., help="Article slug."),
    server: Optional[str] = typer.Option(None, "--server", help="Server ID."),
) -> None:
    """Print an article's content."""
    server_id = resolve_server(server)
    conn = get_connection()
    init_db(conn)
    try:
        article = get_article_by_slug(conn, server_id, slug)
        if article is None:
            typer.echo(f"❌ Article {slug!r} not found.")
            raise typer.Exit(code=1)
        typer.echo(f"# {article.title}")
        typer.echo("")
        typer.echo(article.content)
    finally:
        conn.close()
