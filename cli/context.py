"""Persistent state management for the wikigraph CLI.

Tracks the "active server" so commands can omit ``--server``.
Stored in `~/.wikigraph_cli/context.json`.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import typer
from wikigraph.config import settings


@dataclass
class CliContext:
    active_server_id: str | None = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: str) -> CliContext:
        try:
            raw = json.loads(data)
            return cls(**raw)
        except (json.JSONDecodeError, TypeError):
            return cls()


def _get_context_path() -> Path:
    """Return the path to the context JSON file."""
    return settings.cli_config_dir / "context.json"


def load_context() -> CliContext:
    """Load the CLI context from disk. Returns defaults if missing/corrupt."""
    path = _get_context_path()
    if not path.exists():
        return CliContext()
    try:
        return CliContext.from_json(path.read_text(encoding="utf-8"))
    except OSError:
        return CliContext()


def save_context(ctx: CliContext) -> None:
    """Save the CLI context to disk."""
    settings.cli_config_dir.mkdir(parents=True, exist_ok=True)
    _get_context_path().write_text(ctx.to_json(), encoding="utf-8")


def resolve_server(server: Optional[str]) -> str:
    """Return *server* or, when omitted, the active server from the context.

    Aborts with exit code 1 if neither is available.
    """
    if server:
        return server
    ctx = load_context()
    if not ctx.active_server_id:
        typer.echo("❌ No server selected.")
        typer.echo("Pass --server or run 'server use <id>' first.")
        raise typer.Exit(code=1)
    return ctx.active_server_id
