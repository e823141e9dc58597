"""Market mapping persistence. One row per unordered market id pair."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from skewdesk.models import Mapping, pair_key
from skewdesk.timeutil import now_ms

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

MAPPING_COLUMNS = [
    "market_id_a", "market_id_b", "platform_a", "platform_b",
    "similarity_score", "manual_verified", "updated_at",
]


def get_verified_pairs(conn: DuckDBPyConnection) -> set[tuple[str, str]]:
    """Keys of mappings a human has confirmed; automated passes must not touch them."""
    rows = conn.execute(
        "SELECT market_id_a, market_id_b FROM market_mappings WHERE manual_verified = true"
    ).fetchall()
    return {(r[0], r[1]) for r in rows}


def upsert_mapping(conn: DuckDBPyConnection, mapping: Mapping) -> None:
    """Insert or update by pair key. Caller checks manual_verified first."""
    ts = mapping.updated_at or now_ms()
    conn.execute(
        """
        INSERT INTO market_mappings (market_id_a, market_id_b, platform_a, platform_b, similarity_score, manual_verified, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (market_id_a, market_id_b) DO UPDATE SET
            platform_a = excluded.platform_a,
            platform_b = excluded.platform_b,
            similarity_score = excluded.similarity_score,
            manual_verified = excluded.manual_verified,
            updated_at = excluded.updated_at
        """,
        [
            mapping.market_id_a,
            mapping.market_id_b,
            mapping.platform_a,
            mapping.platform_b,
            mapping.similarity_score,
            mapping.manual_verified,
            ts,
            ts,
        ],
    )


def set_manual_verified(
    conn: DuckDBPyConnection, market_id_a: str, market_id_b: str, verified: bool = True
) -> bool:
    """Flag (or unflag) a mapping as human-verified. Returns False if the pair is unknown."""
    a, b = pair_key(market_id_a, market_id_b)
    found = conn.execute(
        "SELECT COUNT(*) FROM market_mappings WHERE market_id_a = ? AND market_id_b = ?", [a, b]
    ).fetchone()[0]
    if not found:
        return False
    conn.execute(
        "UPDATE market_mappings SET manual_verified = ?, updated_at = ? WHERE market_id_a = ? AND market_id_b = ?",
        [verified, now_ms(), a, b],
    )
    return True


def list_mappings(
    conn: DuckDBPyConnection, *, verified_only: bool = False, limit: int | None = None
) -> list[dict[str, Any]]:
    """Mapping rows as dicts, best score first."""
    sql = f"SELECT {', '.join(MAPPING_COLUMNS)} FROM market_mappings"
    params: list[Any] = []
    if verified_only:
        sql += " WHERE manual_verified = true"
    sql += " ORDER BY similarity_score DESC, market_id_a, market_id_b"
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    rows = conn.execute(sql, params).fetchall()
    return [dict(zip(MAPPING_COLUMNS, r)) for r in rows]


def delete_unverified_mappings(conn: DuckDBPyConnection) -> int:
    """Drop every automated mapping ahead of a fresh match pass. Verified rows stay."""
    count = conn.execute("SELECT COUNT(*) FROM market_mappings WHERE manual_verified = false").fetchone()[0]
    if count:
        conn.execute("DELETE FROM market_mappings WHERE manual_verified = false")
    return count
