"""Market and price persistence.

Writers here are for the ingestion side and test fixtures; the passes only read.
Readers return plain dict rows so the passes can validate and skip bad rows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from skewdesk.models import Market, Price
from skewdesk.timeutil import now_ms

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

MARKET_COLUMNS = ["market_id", "platform", "slug", "title", "category", "status", "resolution_date", "updated_at"]
PRICE_COLUMNS = ["market_id", "platform", "yes_price", "no_price", "volume_24h", "total_volume", "recorded_at"]


def upsert_market(conn: DuckDBPyConnection, market: Market) -> None:
    """Insert or replace a market in the markets table."""
    conn.execute(
        """
        INSERT INTO markets (market_id, platform, slug, title, category, status, resolution_date, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (market_id) DO UPDATE SET
            platform = excluded.platform,
            slug = excluded.slug,
            title = excluded.title,
            category = excluded.category,
            status = excluded.status,
            resolution_date = excluded.resolution_date,
            updated_at = excluded.updated_at
        """,
        [
            market.market_id,
            market.platform,
            market.slug or market.market_id,
            market.title,
            market.category.value,
            market.status.value,
            market.resolution_date,
            market.updated_at or now_ms(),
        ],
    )


def upsert_markets(conn: DuckDBPyConnection, markets: list[Market]) -> None:
    """Upsert multiple markets."""
    for m in markets:
        upsert_market(conn, m)


def append_prices(conn: DuckDBPyConnection, prices: list[Price]) -> None:
    """Append quote snapshots."""
    if not prices:
        return
    conn.executemany(
        """
        INSERT INTO prices (market_id, platform, yes_price, no_price, volume_24h, total_volume, recorded_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        [
            [p.market_id, p.platform, p.yes_price, p.no_price, p.volume_24h, p.total_volume, p.recorded_at]
            for p in prices
        ],
    )


def list_markets(
    conn: DuckDBPyConnection,
    *,
    status: str | None = None,
    platforms: list[str] | None = None,
    categories: list[str] | None = None,
) -> list[dict[str, Any]]:
    """Market rows as dicts, ordered by platform then market_id."""
    conditions = ["1=1"]
    params: list[Any] = []
    if status:
        conditions.append("status = ?")
        params.append(status)
    if platforms:
        conditions.append(f"platform IN ({', '.join('?' for _ in platforms)})")
        params.extend(platforms)
    if categories:
        conditions.append(f"category IN ({', '.join('?' for _ in categories)})")
        params.extend(categories)
    where = " AND ".join(conditions)
    rows = conn.execute(
        f"SELECT {', '.join(MARKET_COLUMNS)} FROM markets WHERE {where} ORDER BY platform, market_id",
        params,
    ).fetchall()
    return [dict(zip(MARKET_COLUMNS, r)) for r in rows]


def list_prices(conn: DuckDBPyConnection, since_ms: int | None = None) -> list[dict[str, Any]]:
    """Price rows as dicts, newest first. Optional lower bound on recorded_at."""
    if since_ms is not None:
        rows = conn.execute(
            f"SELECT {', '.join(PRICE_COLUMNS)} FROM prices WHERE recorded_at >= ? ORDER BY recorded_at DESC, id DESC",
            [since_ms],
        ).fetchall()
    else:
        rows = conn.execute(
            f"SELECT {', '.join(PRICE_COLUMNS)} FROM prices ORDER BY recorded_at DESC, id DESC"
        ).fetchall()
    return [dict(zip(PRICE_COLUMNS, r)) for r in rows]


def store_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Counts per platform for markets and prices."""
    markets = conn.execute(
        "SELECT platform, COUNT(*) FROM markets GROUP BY platform ORDER BY platform"
    ).fetchall()
    prices = conn.execute(
        "SELECT platform, COUNT(*), MAX(recorded_at) FROM prices GROUP BY platform ORDER BY platform"
    ).fetchall()
    return {
        "markets": {r[0]: r[1] for r in markets},
        "prices": {r[0]: {"count": r[1], "latest": r[2]} for r in prices},
    }
