"""Server (namespace) selection commands."""

import typer

from cli.context import load_context, save_context

server_app = typer.Typer(help="Select the server (wiki namespace) to work in.")


@server_app.command("use")
def server_use(
    server_id: str = typer.Argument(..., help="Server ID to make active."),
) -> None:
    """Set the active server for subsequent commands."""
    ctx = load_context()
    ctx.active_server_id = server_id
    save_context(ctx)
    typer.echo(f"📂 Switched to server: {server_id}")


@server_app.command("current")
def server_current() -> None:
    """Show the active server."""
    ctx = load_context()
    if not ctx.active_server_id:
        typer.echo("No active server.")
        return
    typer.echo(ctx.active_server_id)
