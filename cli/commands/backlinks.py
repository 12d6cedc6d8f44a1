"""Commands for inspecting and rebuilding the backlink graph."""

from typing import Optional

import typer

from wikigraph.db import get_connection, init_db
from wikigraph.db.articles import get_article_by_slug
from wikigraph.db.stores import SqliteArticleStore, SqliteBacklinkStore
from wikigraph.links import BacklinkMaintainer, BacklinkQueries

from cli.context import resolve_server
from cli.rendering import render_backlinks

backlinks_app = typer.Typer(help="Inspect and rebuild article backlinks.")


@backlinks_app.command("show")
def backlinks_show(
    slug: str = typer.Argument(..., help="Article slug."),
    server: Optional[str] = typer.Option(None, "--server", help="Server ID."),
) -> None:
    """Display an article's incoming and outgoing links as a tree."""
    server_id = resolve_server(server)
    conn = get_connection()
    init_db(conn)
    try:
        article = get_article_by_slug(conn, server_id, slug)
        if article is None:
            typer.echo(f"❌ Article {slug!r} not found.")
            raise typer.Exit(code=1)
        queries = BacklinkQueries(SqliteArticleStore(conn), SqliteBacklinkStore(conn))
        typer.echo(render_backlinks(article, queries.get_both(server_id, slug)))
    finally:
        conn.close()


@backlinks_app.command("rebuild")
def backlinks_rebuild(
    server: Optional[str] = typer.Option(None, "--server", help="Server ID."),
    stats: bool = typer.Option(False, "--stats", help="Show link statistics afterwards."),
) -> None:
    """Clear and re-derive every backlink of a server from article content."""
    server_id = resolve_server(server)
    conn = get_connection()
    init_db(conn)
    try:
        articles = SqliteArticleStore(conn)
        edges = SqliteBacklinkStore(conn)
        links_found = BacklinkMaintainer(articles, edges).rebuild_server(server_id)
        typer.echo(f"✅ Rebuilt backlinks for server {server_id}: {links_found} link(s) found")

        if stats:
            s = BacklinkQueries(articles, edges).link_statistics(server_id)
            typer.echo("=" * 60)
            typer.echo(f"Total articles:            {s['total_articles']}")
            typer.echo(f"Total links:               {s['total_links']}")
            typer.echo(f"Average links per article: {s['average_links_per_article']:.2f}")
            typer.echo(f"Orphaned articles:         {s['orphaned_articles_count']}")
            typer.echo(f"Dangling links:            {s['dangling_links_count']}")
            if s["most_linked_articles"]:
                typer.echo("\nMost linked-to articles:")
                for a in s["most_linked_articles"][:5]:
                    typer.echo(f"  - {a['title']} ({a['slug']}): {a['count']} backlinks")
            typer.echo("=" * 60)
    finally:
        conn.close()


@backlinks_app.command("dangling")
def backlinks_dangling(
    server: Optional[str] = typer.Option(None, "--server", help="Server ID."),
) -> None:
    """List links that point at articles which do not exist yet."""
    server_id = resolve_server(server)
    conn = get_connection()
    init_db(conn)
    try:
        queries = BacklinkQueries(SqliteArticleStore(conn), SqliteBacklinkStore(conn))
        dangling = queries.find_dangling(server_id)
        if not dangling:
            typer.echo("No dangling links.")
            return
        for d in dangling:
            typer.echo(f"  {d.source_slug} → {d.missing_slug}")
    finally:
        conn.close()


@backlinks_app.command("orphans")
def backlinks_orphans(
    server: Optional[str] = typer.Option(None, "--server", help="Server ID."),
) -> None:
    """List articles with no incoming or outgoing links."""
    server_id = resolve_server(server)
    conn = get_connection()
    init_db(conn)
    try:
        queries = BacklinkQueries(SqliteArticleStore(conn), SqliteBacklinkStore(conn))
        orphans = queries.find_orphans(server_id)
        if not orphans:
            typer.echo("No orphaned articles.")
            return
        for a in orphans:
            typer.echo(f"  {a.title} [{a.slug}]")
    finally:
        conn.close()
