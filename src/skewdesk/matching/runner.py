"""Match pass: read markets, match every platform pair, upsert mappings."""

from __future__ import annotations

import uuid
from typing import Any

import duckdb
import structlog
from pydantic import ValidationError

from skewdesk.config import Settings
from skewdesk.errors import StoreReadError, StoreWriteError
from skewdesk.matching.matcher import best_candidates
from skewdesk.models import Market, MarketStatus, MatchReport
from skewdesk.storage.locks import pass_lock
from skewdesk.storage.mappings import delete_unverified_mappings, get_verified_pairs, upsert_mapping
from skewdesk.storage.markets import list_markets
from skewdesk.storage.runs import save_pass_run
from skewdesk.timeutil import now_ms

log = structlog.get_logger(__name__)

PASS_NAME = "match"


def parse_markets(rows: list[dict[str, Any]]) -> tuple[list[Market], list[str]]:
    """Validate market rows. Bad rows are logged and returned as error strings."""
    markets: list[Market] = []
    errors: list[str] = []
    for row in rows:
        try:
            markets.append(Market(**row))
        except ValidationError as e:
            log.warning("skip_market", market_id=row.get("market_id"), error=str(e))
            errors.append(f"market {row.get('market_id')}: invalid row")
    return markets, errors


def group_by_platform(markets: list[Market], per_platform_limit: int = 0) -> dict[str, list[Market]]:
    """Bucket markets by platform. Past per_platform_limit the rest are dropped."""
    by_platform: dict[str, list[Market]] = {}
    for m in markets:
        bucket = by_platform.setdefault(m.platform, [])
        if per_platform_limit <= 0 or len(bucket) < per_platform_limit:
            bucket.append(m)
    return by_platform


def run_match_pass(conn: Any, settings: Settings) -> MatchReport:
    """Run one matching pass under the match lock and record it in pass_runs."""
    with pass_lock(conn, PASS_NAME, settings.lock_ttl_ms):
        report = _run(conn, settings)
        try:
            save_pass_run(conn, PASS_NAME, report)
        except StoreWriteError as e:
            log.error("pass_record_failed", kind=PASS_NAME, run_id=report.run_id, error=str(e))
            report.errors.append(str(e))
    return report


def _run(conn: Any, settings: Settings) -> MatchReport:
    report = MatchReport(run_id=uuid.uuid4().hex[:8], started_at=now_ms(), threshold=settings.match_threshold)
    log.info("match_pass_started", run_id=report.run_id, threshold=settings.match_threshold)

    try:
        rows = list_markets(
            conn,
            status=MarketStatus.ACTIVE.value,
            platforms=settings.match_platforms or None,
            categories=settings.match_categories or None,
        )
        verified = get_verified_pairs(conn)
    except duckdb.Error as e:
        log.error("match_pass_read_failed", run_id=report.run_id, error=str(e))
        raise StoreReadError(f"cannot read markets: {e}") from e

    markets, bad_rows = parse_markets(rows)
    report.markets_scanned = len(rows)
    report.markets_skipped = len(bad_rows) + sum(1 for m in markets if not m.has_title)
    report.errors.extend(bad_rows)

    try:
        report.mappings_cleared = delete_unverified_mappings(conn)
    except duckdb.Error as e:
        log.warning("mapping_clear_failed", run_id=report.run_id, error=str(e))
        report.errors.append(f"clear unverified mappings: {e}")

    by_platform = group_by_platform(markets, settings.max_markets_per_platform)
    report.platforms = {p: len(ms) for p, ms in sorted(by_platform.items())}
    report.markets_truncated = len(markets) - sum(report.platforms.values())
    if report.markets_truncated:
        log.warning(
            "markets_truncated",
            run_id=report.run_id,
            dropped=report.markets_truncated,
            per_platform_limit=settings.max_markets_per_platform,
        )
    platforms = sorted(by_platform)

    sample: list[dict[str, Any]] = []
    for i, platform_a in enumerate(platforms):
        for platform_b in platforms[i + 1:]:
            log.debug(
                "matching_platform_pair",
                source=platform_a,
                target=platform_b,
                source_count=len(by_platform[platform_a]),
                target_count=len(by_platform[platform_b]),
            )
            candidates = best_candidates(
                by_platform[platform_a],
                by_platform[platform_b],
                threshold=settings.match_threshold,
                compatibility_guards=settings.compatibility_guards,
            )
            for cand in candidates:
                mapping = cand.to_mapping(updated_at=now_ms())
                report.mappings_found += 1
                if mapping.key in verified:
                    report.skipped_verified += 1
                    continue
                try:
                    upsert_mapping(conn, mapping)
                except duckdb.Error as e:
                    log.warning("mapping_upsert_failed", pair=mapping.key, error=str(e))
                    report.errors.append(f"upsert {mapping.market_id_a}/{mapping.market_id_b}: {e}")
                    continue
                report.mappings_written += 1
                sample.append(
                    {
                        "platforms": f"{platform_a}<>{platform_b}",
                        "titles": [cand.source.title[:60], cand.target.title[:60]],
                        "score": round(cand.score, 4),
                    }
                )

    sample.sort(key=lambda s: s["score"], reverse=True)
    report.top = sample[: settings.match_sample_size]
    report.finished_at = now_ms()
    log.info(
        "match_pass_finished",
        run_id=report.run_id,
        markets=report.markets_scanned,
        cleared=report.mappings_cleared,
        found=report.mappings_found,
        written=report.mappings_written,
        skipped_verified=report.skipped_verified,
        errors=len(report.errors),
    )
    return report
