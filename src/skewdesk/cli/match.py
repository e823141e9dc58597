"""Match subcommand: run, list, verify."""

from __future__ import annotations

import typer

from skewdesk.errors import PassLockedError, StoreReadError
from skewdesk.matching.runner import run_match_pass
from skewdesk.storage.db import get_connection, init_schema
from skewdesk.storage.mappings import list_mappings, set_manual_verified

app = typer.Typer(help="Cross-platform market matching")


@app.command("run")
def run(
    ctx: typer.Context,
    threshold: float | None = typer.Option(None, "--threshold", "-t", help="Minimum score (overrides config)"),
) -> None:
    """Run one matching pass and upsert mappings."""
    settings = ctx.obj["settings"]
    if threshold is not None:
        settings.matching["threshold"] = threshold
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        report = run_match_pass(conn, settings)
    except (StoreReadError, PassLockedError) as e:
        typer.echo(f"Match pass failed: {e}", err=True)
        raise typer.Exit(1)
    finally:
        conn.close()
    typer.echo(f"Run id: {report.run_id}")
    typer.echo(
        f"Markets scanned: {report.markets_scanned}  Skipped: {report.markets_skipped}  "
        f"Over per-platform limit: {report.markets_truncated}"
    )
    typer.echo("Platforms: " + ", ".join(f"{p}={n}" for p, n in report.platforms.items()))
    typer.echo(
        f"Cleared: {report.mappings_cleared}  Found: {report.mappings_found}  Written: {report.mappings_written}  "
        f"Verified (untouched): {report.skipped_verified}"
    )
    for m in report.top[:10]:
        typer.echo(f"  [{m['score']:.2f}] {m['platforms']}  {m['titles'][0]}  <->  {m['titles'][1]}")
    if report.errors:
        typer.echo(f"Errors: {len(report.errors)}", err=True)


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    verified: bool = typer.Option(False, "--verified", help="Only manually verified mappings"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max rows"),
) -> None:
    """List stored mappings, best score first."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        rows = list_mappings(conn, verified_only=verified, limit=limit)
        for r in rows:
            flag = "*" if r["manual_verified"] else " "
            typer.echo(
                f" {flag} {r['similarity_score']:.3f}  {r['platform_a'] or '?'}:{r['market_id_a']}  "
                f"{r['platform_b'] or '?'}:{r['market_id_b']}"
            )
        typer.echo(f"Total: {len(rows)} mappings")
    finally:
        conn.close()


@app.command("verify")
def verify(
    ctx: typer.Context,
    market_a: str = typer.Argument(..., help="Market id"),
    market_b: str = typer.Argument(..., help="Market id"),
    unset: bool = typer.Option(False, "--unset", help="Clear the verified flag instead"),
) -> None:
    """Mark a mapping as manually verified so automated passes leave it alone."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        if not set_manual_verified(conn, market_a, market_b, verified=not unset):
            typer.echo(f"Mapping not found: {market_a} / {market_b}")
            raise typer.Exit(1)
        typer.echo("Unverified." if unset else "Verified.")
    finally:
        conn.close()
