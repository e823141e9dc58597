"""HTTP API: pass triggers and read endpoints."""

import duckdb
import pytest
from fastapi.testclient import TestClient

from factories import make_market, make_price
from skewdesk.api import main as api_main
from skewdesk.spreads import runner
from skewdesk.storage.db import get_connection, init_schema
from skewdesk.storage.markets import append_prices, upsert_markets
from skewdesk.timeutil import now_ms


@pytest.fixture
def client(settings):
    api_main.configure(settings=settings)
    with TestClient(api_main.app) as c:
        yield c
    api_main.configure()


def _seed(settings, *extra_sql):
    conn = get_connection(settings.db_path)
    try:
        init_schema(conn)
        upsert_markets(
            conn,
            [
                make_market("k-1", "kalshi", "Trump wins 2024 election", resolution_days=0),
                make_market("p-1", "polymarket", "Will Trump win the 2024 Presidential Election?", resolution_days=1),
            ],
        )
        append_prices(conn, [make_price("k-1", "kalshi", 0.52, 0.48), make_price("p-1", "polymarket", 0.60, 0.40)])
        for sql, params in extra_sql:
            conn.execute(sql, params)
    finally:
        conn.close()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_match_then_spread_pass(client, settings):
    _seed(settings)
    r = client.post("/passes/match")
    assert r.status_code == 200
    assert r.json()["mappings_written"] == 1

    r = client.get("/mappings")
    assert r.status_code == 200
    [m] = r.json()["mappings"]
    assert (m["market_id_a"], m["market_id_b"]) == ("k-1", "p-1")

    r = client.post("/passes/spreads")
    assert r.status_code == 200
    body = r.json()
    assert body["inserted"] == 2
    assert body["groups"]["mapping"] == 1

    r = client.get("/spreads")
    data = r.json()
    assert data["total"] == 2
    assert data["spreads"][0]["skew_percentage"] == 20.0
    assert data["spreads"][0]["side"] == "no"
    assert data["last_pass"]["run_id"] == body["run_id"]
    assert data["last_pass"]["error_count"] == 0


def test_latest_pass_lookup(client, settings):
    r = client.get("/passes/spreads/latest")
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"

    r = client.get("/passes/orderbook/latest")
    assert r.status_code == 404
    assert r.json()["code"] == "unknown_kind"

    client.post("/passes/spreads")
    r = client.get("/passes/spreads/latest")
    assert r.status_code == 200
    assert r.json()["kind"] == "spreads"


def test_overlapping_pass_returns_conflict(client, settings):
    _seed(settings, ("INSERT INTO pass_locks VALUES ('spreads', 'other', ?)", [now_ms()]))
    r = client.post("/passes/spreads")
    assert r.status_code == 409
    assert r.json()["code"] == "pass_locked"


def test_store_read_failure_returns_500(client, settings, monkeypatch):
    def broken(conn, since_ms=None):
        raise duckdb.Error("io error")

    monkeypatch.setattr(runner, "list_prices", broken)
    _seed(settings)
    r = client.post("/passes/spreads")
    assert r.status_code == 500
    assert r.json()["code"] == "store_read_failed"
    assert client.get("/spreads").json()["last_pass"] is None
