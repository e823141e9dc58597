"""Shared fixtures: throwaway DuckDB store and settings pointing at it."""

import tempfile
from pathlib import Path

import pytest

from skewdesk.config import Settings
from skewdesk.storage.db import get_connection, init_schema


@pytest.fixture
def db_path():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    yield path
    path.unlink(missing_ok=True)
    Path(str(path) + ".wal").unlink(missing_ok=True)
    Path(tmp).rmdir()


@pytest.fixture
def temp_db(db_path):
    conn = get_connection(db_path)
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def settings(db_path):
    return Settings(storage={"db_path": str(db_path)})
