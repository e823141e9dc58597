"""Spread pass: read the store, compute opportunities, replace the active set."""

from __future__ import annotations

import uuid
from typing import Any

import duckdb
import structlog
from pydantic import ValidationError

from skewdesk.config import Settings
from skewdesk.errors import StoreReadError, StoreWriteError
from skewdesk.matching.runner import parse_markets
from skewdesk.models import Mapping, Price, Spread, SpreadOpportunity, SpreadReport, SpreadSide
from skewdesk.spreads.calculator import SpreadCalculator
from skewdesk.spreads.parlay import ParlayConfig
from skewdesk.storage.locks import pass_lock
from skewdesk.storage.mappings import list_mappings
from skewdesk.storage.markets import list_markets, list_prices
from skewdesk.storage.runs import save_pass_run
from skewdesk.storage.spreads import deactivate_active_spreads, insert_spread
from skewdesk.timeutil import now_ms

log = structlog.get_logger(__name__)

PASS_NAME = "spreads"


def parse_prices(rows: list[dict[str, Any]]) -> tuple[list[Price], list[str]]:
    """Validate price rows. Missing or non-numeric prices are skipped and logged."""
    prices: list[Price] = []
    errors: list[str] = []
    for row in rows:
        try:
            prices.append(Price(**row))
        except ValidationError as e:
            log.warning("skip_price", market_id=row.get("market_id"), platform=row.get("platform"), error=str(e))
            errors.append(f"price {row.get('market_id')}@{row.get('platform')}: invalid row")
    return prices, errors


def to_spread(opp: SpreadOpportunity, detected_at: int, expiry_ms: int) -> Spread:
    return Spread(**opp.model_dump(), is_active=True, detected_at=detected_at, expires_at=detected_at + expiry_ms)


def write_spreads(
    conn: Any, opportunities: list[SpreadOpportunity], detected_at: int, expiry_ms: int, report: SpreadReport
) -> None:
    """Two-phase write. A failed deactivation aborts; a failed insert only skips that row."""
    try:
        report.deactivated = deactivate_active_spreads(conn)
    except duckdb.Error as e:
        log.error("spread_deactivate_failed", run_id=report.run_id, error=str(e))
        report.errors.append(f"deactivate: {e}")
        report.write_aborted = True
        return
    for opp in opportunities:
        try:
            insert_spread(conn, to_spread(opp, detected_at, expiry_ms))
        except duckdb.Error as e:
            log.warning("spread_insert_failed", market_id=opp.market_id, error=str(e))
            report.errors.append(f"insert {opp.market_id} {opp.buy_platform}->{opp.sell_platform}: {e}")
            continue
        report.inserted += 1


def run_spread_pass(conn: Any, settings: Settings, now: int | None = None) -> SpreadReport:
    """Run one spread pass under the spreads lock and record it in pass_runs."""
    with pass_lock(conn, PASS_NAME, settings.lock_ttl_ms):
        report = _run(conn, settings, now)
        try:
            save_pass_run(conn, PASS_NAME, report)
        except StoreWriteError as e:
            log.error("pass_record_failed", kind=PASS_NAME, run_id=report.run_id, error=str(e))
            report.errors.append(str(e))
    return report


def _run(conn: Any, settings: Settings, now: int | None) -> SpreadReport:
    started = now if now is not None else now_ms()
    report = SpreadReport(run_id=uuid.uuid4().hex[:8], started_at=started)
    log.info("spread_pass_started", run_id=report.run_id, min_skew=settings.min_skew_percent)

    since = started - settings.price_max_age_ms if settings.price_max_age_ms > 0 else None
    try:
        market_rows = list_markets(conn)
        price_rows = list_prices(conn, since_ms=since)
        mapping_rows = list_mappings(conn) if settings.use_mappings else []
    except duckdb.Error as e:
        log.error("spread_pass_read_failed", run_id=report.run_id, error=str(e))
        raise StoreReadError(f"cannot read markets/prices: {e}") from e

    markets, bad_markets = parse_markets(market_rows)
    prices, bad_prices = parse_prices(price_rows)
    mappings = [Mapping(**row) for row in mapping_rows]
    report.markets_scanned = len(market_rows)
    report.prices_scanned = len(price_rows)
    report.rows_skipped = len(bad_markets) + len(bad_prices)
    report.mappings_used = len(mappings)
    report.errors.extend(bad_markets + bad_prices)

    parlay = None
    if settings.parlay_enabled:
        parlay = ParlayConfig(
            parlay_platform=settings.parlay_platform,
            singles_platform=settings.singles_platform,
            min_skew_percent=settings.parlay_min_skew_percent,
        )
    calc = SpreadCalculator(
        min_skew_percent=settings.min_skew_percent,
        dedup_tolerance=settings.dedup_tolerance,
        parlay=parlay,
    )
    significant = calc.compute(prices, markets, mappings)
    report.groups = dict(calc.groups)
    report.total_opportunities = calc.total_opportunities
    report.significant_opportunities = len(significant)
    report.parlay_opportunities = sum(1 for o in significant if o.side is SpreadSide.PARLAY)

    write_spreads(conn, significant, started, settings.spread_expiry_ms, report)

    report.top = [o.model_dump(mode="json") for o in significant[: settings.spread_sample_size]]
    report.finished_at = now_ms()
    log.info(
        "spread_pass_finished",
        run_id=report.run_id,
        prices=report.prices_scanned,
        significant=report.significant_opportunities,
        deactivated=report.deactivated,
        inserted=report.inserted,
        errors=len(report.errors),
    )
    return report
