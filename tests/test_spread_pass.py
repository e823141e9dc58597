"""Spread pass against a temp store: replace-active lifecycle and failure handling."""

import duckdb
import pytest

from factories import NOW, make_market, make_price
from skewdesk.errors import StoreReadError
from skewdesk.models import Spread
from skewdesk.spreads import runner
from skewdesk.spreads.runner import run_spread_pass
from skewdesk.storage.locks import current_holder
from skewdesk.storage.markets import append_prices, upsert_markets
from skewdesk.storage.runs import get_last_pass_run
from skewdesk.storage.spreads import insert_spread, list_spreads


def _seed(conn, poly_no=0.50):
    upsert_markets(conn, [make_market("m-1", "kalshi", "Fed cuts rates in March", category="economics")])
    append_prices(
        conn,
        [
            make_price("m-1", "kalshi", 0.50, 0.50, recorded_at=NOW - 1000),
            make_price("m-1", "polymarket", 0.60, poly_no, recorded_at=NOW - 1000),
        ],
    )


def _seed_prior_spreads(conn, n=3):
    for i in range(n):
        insert_spread(
            conn,
            Spread(
                market_id=f"old-{i}",
                side="yes",
                buy_platform="kalshi",
                sell_platform="polymarket",
                buy_price=0.4,
                sell_price=0.5,
                skew_percentage=25.0,
                potential_profit=10.0,
                detected_at=NOW - 600_000,
                expires_at=NOW - 300_000,
            ),
        )


def _count(conn, active):
    return conn.execute("SELECT COUNT(*) FROM spreads WHERE is_active = ?", [active]).fetchone()[0]


def test_pass_replaces_active_set(temp_db, settings):
    _seed(temp_db)
    _seed_prior_spreads(temp_db)
    report = run_spread_pass(temp_db, settings, now=NOW)
    assert report.significant_opportunities == 1
    assert report.deactivated == 3
    assert report.inserted == 1
    assert _count(temp_db, True) == 1
    assert _count(temp_db, False) == 3
    [spread] = list_spreads(temp_db)
    assert spread.market_id == "m-1"
    assert spread.skew_percentage == 20.0


def test_new_spreads_expire_five_minutes_after_detection(temp_db, settings):
    _seed(temp_db)
    run_spread_pass(temp_db, settings, now=NOW)
    [spread] = list_spreads(temp_db)
    assert spread.detected_at == NOW
    assert spread.expires_at == NOW + 300_000
    assert list_spreads(temp_db, now=NOW + 299_999) == [spread]
    assert list_spreads(temp_db, now=NOW + 300_000) == []


def test_pass_with_no_opportunities_clears_active_set(temp_db, settings):
    upsert_markets(temp_db, [make_market("m-1", "kalshi", "Quiet market")])
    append_prices(temp_db, [make_price("m-1", "kalshi", 0.5, 0.5), make_price("m-1", "polymarket", 0.5, 0.5)])
    _seed_prior_spreads(temp_db, n=2)
    report = run_spread_pass(temp_db, settings, now=NOW)
    assert report.deactivated == 2
    assert report.inserted == 0
    assert _count(temp_db, True) == 0


def test_failed_deactivation_aborts_write(temp_db, settings, monkeypatch):
    def broken(conn):
        raise duckdb.Error("disk full")

    monkeypatch.setattr(runner, "deactivate_active_spreads", broken)
    _seed(temp_db)
    _seed_prior_spreads(temp_db)
    report = run_spread_pass(temp_db, settings, now=NOW)
    assert report.write_aborted
    assert report.inserted == 0
    assert len(report.errors) == 1
    assert _count(temp_db, True) == 3
    assert get_last_pass_run(temp_db, "spreads")["error_count"] == 1


def test_failed_insert_skips_only_that_row(temp_db, settings, monkeypatch):
    calls = []
    real_insert = runner.insert_spread

    def flaky(conn, spread):
        calls.append(spread.side)
        if len(calls) == 1:
            raise duckdb.Error("constraint")
        real_insert(conn, spread)

    monkeypatch.setattr(runner, "insert_spread", flaky)
    _seed(temp_db, poly_no=0.40)
    report = run_spread_pass(temp_db, settings, now=NOW)
    assert report.significant_opportunities == 2
    assert report.inserted == 1
    assert len(report.errors) == 1
    assert not report.write_aborted
    assert _count(temp_db, True) == 1


def test_read_failure_leaves_store_untouched(temp_db, settings, monkeypatch):
    def broken(conn, since_ms=None):
        raise duckdb.Error("io error")

    monkeypatch.setattr(runner, "list_prices", broken)
    _seed(temp_db)
    _seed_prior_spreads(temp_db)
    with pytest.raises(StoreReadError):
        run_spread_pass(temp_db, settings, now=NOW)
    assert _count(temp_db, True) == 3
    assert get_last_pass_run(temp_db, "spreads") is None
    assert current_holder(temp_db, "spreads") is None


def test_rows_with_missing_prices_are_skipped(temp_db, settings):
    _seed(temp_db)
    temp_db.execute(
        "INSERT INTO prices (market_id, platform, yes_price, no_price, recorded_at) VALUES ('m-1', 'manifold', NULL, 0.5, ?)",
        [NOW],
    )
    report = run_spread_pass(temp_db, settings, now=NOW)
    assert report.prices_scanned == 3
    assert report.rows_skipped == 1
    assert report.inserted == 1


def test_report_sample_is_capped(temp_db, settings):
    _seed(temp_db, poly_no=0.40)
    settings.spreads["report_sample_size"] = 1
    report = run_spread_pass(temp_db, settings, now=NOW)
    assert report.significant_opportunities == 2
    assert len(report.top) == 1
    assert report.top[0]["skew_percentage"] == 25.0
    assert report.top[0]["side"] == "no"


def test_unrecordable_pass_keeps_its_spreads(temp_db, settings):
    _seed(temp_db)
    temp_db.execute("DROP TABLE pass_runs")
    report = run_spread_pass(temp_db, settings, now=NOW)
    assert report.inserted == 1
    assert len(list_spreads(temp_db)) == 1
    [error] = report.errors
    assert error.startswith(f"cannot record spreads pass {report.run_id}")
    assert current_holder(temp_db, "spreads") is None
