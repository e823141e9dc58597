"""Passes subcommand: last."""

from __future__ import annotations

import json

import typer

from skewdesk.storage.db import get_connection, init_schema
from skewdesk.storage.runs import get_last_pass_run
from skewdesk.timeutil import iso

app = typer.Typer(help="Pass history")


@app.command("last")
def last(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="match or spreads"),
    as_json: bool = typer.Option(False, "--json", help="Print the full summary as JSON"),
) -> None:
    """Show the most recent pass of a kind."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        run = get_last_pass_run(conn, kind)
    finally:
        conn.close()
    if not run:
        typer.echo(f"No {kind} pass recorded.")
        raise typer.Exit(1)
    if as_json:
        typer.echo(json.dumps(run, indent=2))
        return
    typer.echo(f"Run: {run['run_id']}  ({run['kind']})")
    typer.echo(f"Started: {iso(run['started_at'])}  Finished: {iso(run['finished_at'])}")
    typer.echo(f"Errors: {run['error_count']}")
