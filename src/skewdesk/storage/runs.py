"""Pass history - the last computed summary plus its error count."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import duckdb

from skewdesk.errors import StoreWriteError

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

    from skewdesk.models import MatchReport, SpreadReport


def save_pass_run(conn: DuckDBPyConnection, kind: str, report: MatchReport | SpreadReport) -> None:
    """Persist a finished pass report to pass_runs. Raises StoreWriteError."""
    try:
        conn.execute(
            """
            INSERT INTO pass_runs (run_id, kind, started_at, finished_at, error_count, summary)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                report.run_id,
                kind,
                report.started_at,
                report.finished_at,
                len(report.errors),
                json.dumps(report.to_dict()),
            ],
        )
    except duckdb.Error as e:
        raise StoreWriteError(f"cannot record {kind} pass {report.run_id}: {e}") from e


def get_last_pass_run(conn: DuckDBPyConnection, kind: str) -> dict[str, Any] | None:
    """Most recent pass of the given kind, or None."""
    row = conn.execute(
        """
        SELECT run_id, kind, started_at, finished_at, error_count, summary
        FROM pass_runs WHERE kind = ? ORDER BY started_at DESC LIMIT 1
        """,
        [kind],
    ).fetchone()
    if not row:
        return None
    return {
        "run_id": row[0],
        "kind": row[1],
        "started_at": row[2],
        "finished_at": row[3],
        "error_count": row[4],
        "summary": json.loads(row[5]) if row[5] else {},
    }
