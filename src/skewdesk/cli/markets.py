"""Markets and prices subcommands: load, list, stats."""

from __future__ import annotations

from pathlib import Path

import typer

from skewdesk.models import Market, Price
from skewdesk.storage.db import get_connection, init_schema
from skewdesk.storage.loader import parse_rows, read_rows
from skewdesk.storage.markets import append_prices, store_stats, upsert_markets
from skewdesk.storage.markets import list_markets as storage_list_markets

app = typer.Typer(help="Market rows: load from ingestion output, list, stats")
prices_app = typer.Typer(help="Price snapshots: load from ingestion output")


@app.command("load")
def load(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON or JSON-lines file of market rows"),
) -> None:
    """Upsert market rows produced by an ingestion adapter."""
    settings = ctx.obj["settings"]
    markets, skipped = parse_rows(read_rows(path), Market)
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        upsert_markets(conn, markets)
        typer.echo(f"Loaded {len(markets)} markets ({skipped} skipped).")
    finally:
        conn.close()


@app.command("list")
def list_markets(
    ctx: typer.Context,
    platform: str | None = typer.Option(None, "--platform", help="Only this platform"),
    status: str | None = typer.Option(None, "--status", help="active, resolved or suspended"),
) -> None:
    """List markets in the store."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        rows = storage_list_markets(conn, status=status, platforms=[platform] if platform else None)
        for r in rows:
            title = (r.get("title") or "")[:60]
            typer.echo(f"  {r['platform']:<12} {r['market_id'][:24]:<24}  {r.get('category') or '':<13} {title}")
        typer.echo(f"Total: {len(rows)} markets")
    finally:
        conn.close()


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Market and price counts per platform."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        s = store_stats(conn)
        typer.echo("Markets by platform:")
        for platform, count in s["markets"].items():
            typer.echo(f"  {platform:<12} {count}")
        typer.echo("Prices by platform:")
        for platform, info in s["prices"].items():
            typer.echo(f"  {platform:<12} {info['count']}  latest={info['latest']}")
    finally:
        conn.close()


@prices_app.command("load")
def load_prices(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON or JSON-lines file of price rows"),
) -> None:
    """Append price snapshots produced by an ingestion adapter."""
    settings = ctx.obj["settings"]
    prices, skipped = parse_rows(read_rows(path), Price)
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        append_prices(conn, prices)
        typer.echo(f"Loaded {len(prices)} prices ({skipped} skipped).")
    finally:
        conn.close()
