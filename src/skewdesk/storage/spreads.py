"""Spread persistence: deactivate-all then insert-new.

The two steps are not atomic. If inserts fail after deactivation the store has
no active spreads, which callers treat as "no answer" rather than a stale one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from skewdesk.models import Spread

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SPREAD_COLUMNS = [
    "id", "market_id", "side", "buy_platform", "sell_platform", "buy_price", "sell_price",
    "skew_percentage", "potential_profit", "source", "is_active", "detected_at", "expires_at",
]


def deactivate_active_spreads(conn: DuckDBPyConnection) -> int:
    """Mark every active spread inactive. Returns how many were active."""
    count = conn.execute("SELECT COUNT(*) FROM spreads WHERE is_active = true").fetchone()[0]
    if count:
        conn.execute("UPDATE spreads SET is_active = false WHERE is_active = true")
    return count


def insert_spread(conn: DuckDBPyConnection, spread: Spread) -> None:
    conn.execute(
        """
        INSERT INTO spreads (market_id, side, buy_platform, sell_platform, buy_price, sell_price,
                             skew_percentage, potential_profit, source, is_active, detected_at, expires_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            spread.market_id,
            spread.side.value,
            spread.buy_platform,
            spread.sell_platform,
            spread.buy_price,
            spread.sell_price,
            spread.skew_percentage,
            spread.potential_profit,
            spread.source,
            spread.is_active,
            spread.detected_at,
            spread.expires_at,
        ],
    )


def _row_to_spread(row: tuple[Any, ...]) -> Spread:
    data = dict(zip(SPREAD_COLUMNS, row))
    data["spread_id"] = data.pop("id")
    return Spread(**data)


def list_spreads(
    conn: DuckDBPyConnection,
    *,
    active_only: bool = True,
    now: int | None = None,
    limit: int | None = None,
) -> list[Spread]:
    """Spreads ordered by skew. With now set, active rows past expires_at are left out."""
    conditions = ["1=1"]
    params: list[Any] = []
    if active_only:
        conditions.append("is_active = true")
    if now is not None:
        conditions.append("expires_at > ?")
        params.append(now)
    sql = (
        f"SELECT {', '.join(SPREAD_COLUMNS)} FROM spreads WHERE {' AND '.join(conditions)} "
        "ORDER BY skew_percentage DESC, id"
    )
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    return [_row_to_spread(r) for r in conn.execute(sql, params).fetchall()]
