"""Single-flight run lock per pass kind.

The spread write (deactivate all, insert new) is unsafe under interleaving, so
overlapping passes of one kind must not run. The lock lives in the store so
separate processes sharing a database file see it; a threading.Lock covers
threads inside one process. Locks older than the TTL are treated as abandoned.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from threading import Lock
from typing import TYPE_CHECKING, Iterator

import structlog

from skewdesk.errors import PassLockedError
from skewdesk.timeutil import now_ms

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

_local_locks: dict[str, Lock] = {}
_registry_lock = Lock()


def _local_lock(name: str) -> Lock:
    with _registry_lock:
        if name not in _local_locks:
            _local_locks[name] = Lock()
        return _local_locks[name]


def acquire_pass_lock(conn: DuckDBPyConnection, name: str, holder: str, ttl_ms: int) -> bool:
    """Take the named lock for holder. Returns False if someone else holds a fresh lock."""
    now = now_ms()
    stale = conn.execute(
        "DELETE FROM pass_locks WHERE name = ? AND acquired_at < ? RETURNING holder",
        [name, now - ttl_ms],
    ).fetchall()
    if stale:
        log.warning("pass_lock_expired", name=name, holder=stale[0][0])
    conn.execute(
        "INSERT INTO pass_locks (name, holder, acquired_at) VALUES (?, ?, ?) ON CONFLICT (name) DO NOTHING",
        [name, holder, now],
    )
    row = conn.execute("SELECT holder FROM pass_locks WHERE name = ?", [name]).fetchone()
    return row is not None and row[0] == holder


def release_pass_lock(conn: DuckDBPyConnection, name: str, holder: str) -> None:
    conn.execute("DELETE FROM pass_locks WHERE name = ? AND holder = ?", [name, holder])


def current_holder(conn: DuckDBPyConnection, name: str) -> str | None:
    row = conn.execute("SELECT holder FROM pass_locks WHERE name = ?", [name]).fetchone()
    return row[0] if row else None


@contextmanager
def pass_lock(conn: DuckDBPyConnection, name: str, ttl_ms: int) -> Iterator[str]:
    """Hold the named pass lock for the duration of the block. Raises PassLockedError."""
    local = _local_lock(name)
    if not local.acquire(blocking=False):
        raise PassLockedError(name)
    holder = uuid.uuid4().hex[:12]
    try:
        if not acquire_pass_lock(conn, name, holder, ttl_ms):
            raise PassLockedError(name, current_holder(conn, name))
        try:
            yield holder
        finally:
            release_pass_lock(conn, name, holder)
    finally:
        local.release()
