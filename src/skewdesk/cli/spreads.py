"""Spreads subcommand: run, list."""

from __future__ import annotations

import typer

from skewdesk.errors import PassLockedError, StoreReadError
from skewdesk.spreads.runner import run_spread_pass
from skewdesk.storage.db import get_connection, init_schema
from skewdesk.storage.spreads import list_spreads
from skewdesk.timeutil import iso, now_ms

app = typer.Typer(help="Cross-platform arbitrage spreads")


@app.command("run")
def run(
    ctx: typer.Context,
    min_skew: float | None = typer.Option(None, "--min-skew", help="Minimum skew percent (overrides config)"),
) -> None:
    """Compute spreads and replace the active set."""
    settings = ctx.obj["settings"]
    if min_skew is not None:
        settings.spreads["min_skew_percent"] = min_skew
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        report = run_spread_pass(conn, settings)
    except (StoreReadError, PassLockedError) as e:
        typer.echo(f"Spread pass failed: {e}", err=True)
        raise typer.Exit(1)
    finally:
        conn.close()
    typer.echo(f"Run id: {report.run_id}")
    typer.echo(f"Prices scanned: {report.prices_scanned}  Markets: {report.markets_scanned}  Skipped rows: {report.rows_skipped}")
    typer.echo("Groups: " + ", ".join(f"{k}={v}" for k, v in report.groups.items()))
    typer.echo(
        f"Opportunities: {report.total_opportunities}  Significant: {report.significant_opportunities}  "
        f"Parlay: {report.parlay_opportunities}"
    )
    typer.echo(f"Deactivated: {report.deactivated}  Inserted: {report.inserted}")
    if report.write_aborted:
        typer.echo("Write phase aborted: previous spreads state unknown.", err=True)
    if report.errors:
        typer.echo(f"Errors: {len(report.errors)}", err=True)


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    include_expired: bool = typer.Option(False, "--include-expired", help="Show active rows past expires_at"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max rows"),
) -> None:
    """Show active spreads, highest skew first."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        rows = list_spreads(conn, now=None if include_expired else now_ms(), limit=limit)
        for s in rows:
            typer.echo(
                f"  {s.skew_percentage:>7.2f}%  {s.side.value:<6} buy {s.buy_platform}@{s.buy_price:.3f}  "
                f"sell {s.sell_platform}@{s.sell_price:.3f}  +{s.potential_profit:.2f}/100  {s.market_id}  "
                f"expires {iso(s.expires_at)}"
            )
        typer.echo(f"Total: {len(rows)} spreads")
    finally:
        conn.close()
