"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Sequences for auto-increment IDs
CREATE SEQUENCE IF NOT EXISTS price_seq START 1;
CREATE SEQUENCE IF NOT EXISTS spread_seq START 1;

-- One row per platform-specific listing (written by ingestion adapters)
CREATE TABLE IF NOT EXISTS markets (
    market_id       VARCHAR PRIMARY KEY,
    platform        VARCHAR NOT NULL,
    slug            VARCHAR,
    title           VARCHAR,
    category        VARCHAR,
    status          VARCHAR,
    resolution_date BIGINT,
    updated_at      BIGINT
);

-- Quote snapshots (append-only)
CREATE TABLE IF NOT EXISTS prices (
    id              BIGINT PRIMARY KEY DEFAULT nextval('price_seq'),
    market_id       VARCHAR NOT NULL,
    platform        VARCHAR NOT NULL,
    yes_price       DOUBLE,
    no_price        DOUBLE,
    volume_24h      DOUBLE,
    total_volume    DOUBLE,
    recorded_at     BIGINT
);

-- Cross-platform mappings, keyed by the sorted id pair
CREATE TABLE IF NOT EXISTS market_mappings (
    market_id_a     VARCHAR NOT NULL,
    market_id_b     VARCHAR NOT NULL,
    platform_a      VARCHAR,
    platform_b      VARCHAR,
    similarity_score DOUBLE NOT NULL,
    manual_verified BOOLEAN NOT NULL DEFAULT FALSE,
    created_at      BIGINT,
    updated_at      BIGINT,
    PRIMARY KEY (market_id_a, market_id_b)
);

-- Arbitrage opportunities: each spread pass deactivates the previous set
CREATE TABLE IF NOT EXISTS spreads (
    id              BIGINT PRIMARY KEY DEFAULT nextval('spread_seq'),
    market_id       VARCHAR NOT NULL,
    side            VARCHAR NOT NULL,
    buy_platform    VARCHAR NOT NULL,
    sell_platform   VARCHAR NOT NULL,
    buy_price       DOUBLE NOT NULL,
    sell_price      DOUBLE NOT NULL,
    skew_percentage DOUBLE NOT NULL,
    potential_profit DOUBLE,
    source          VARCHAR,
    is_active       BOOLEAN NOT NULL,
    detected_at     BIGINT NOT NULL,
    expires_at      BIGINT NOT NULL
);

-- Single-flight lock per pass kind
CREATE TABLE IF NOT EXISTS pass_locks (
    name            VARCHAR PRIMARY KEY,
    holder          VARCHAR NOT NULL,
    acquired_at     BIGINT NOT NULL
);

-- Summary of every finished pass
CREATE TABLE IF NOT EXISTS pass_runs (
    run_id          VARCHAR PRIMARY KEY,
    kind            VARCHAR NOT NULL,
    started_at      BIGINT NOT NULL,
    finished_at     BIGINT,
    error_count     INTEGER NOT NULL,
    summary         JSON
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager.
    Use ":memory:" for an in-process throwaway store."""
    if str(db_path) == ":memory:":
        return duckdb.connect(":memory:")
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and sequences if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
