"""FastAPI backend: trigger passes from a scheduler, read spreads and mappings."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skewdesk.api.schemas import (
    ErrorResponse,
    HealthResponse,
    MappingItem,
    MappingsListResponse,
    MatchPassResponse,
    PassRunResponse,
    SpreadItem,
    SpreadPassResponse,
    SpreadsListResponse,
)
from skewdesk.config import Settings, get_settings
from skewdesk.errors import PassLockedError, StoreReadError
from skewdesk.matching.runner import run_match_pass
from skewdesk.spreads.runner import run_spread_pass
from skewdesk.storage.db import get_connection, init_schema
from skewdesk.storage.mappings import list_mappings
from skewdesk.storage.runs import get_last_pass_run
from skewdesk.storage.spreads import list_spreads
from skewdesk.timeutil import now_ms

# Set by run_api() (or tests) before the app starts.
_config_profile: str | None = None
_settings: Settings | None = None

PASS_KINDS = ("match", "spreads")


def configure(settings: Settings | None = None, profile: str | None = None) -> None:
    global _settings, _config_profile
    _settings = settings
    _config_profile = profile


def _get_settings() -> Settings:
    return _settings if _settings is not None else get_settings(_config_profile)


def _get_conn():
    conn = get_connection(_get_settings().db_path)
    init_schema(conn)
    return conn


@asynccontextmanager
async def lifespan(app: FastAPI):
    conn = _get_conn()
    conn.close()
    yield


app = FastAPI(title="skewdesk API", version="0.1.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse()


@app.post(
    "/passes/match",
    response_model=MatchPassResponse,
    responses={409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def trigger_match_pass():
    """Run one matching pass. Parameterless; thresholds come from config."""
    conn = _get_conn()
    try:
        report = run_match_pass(conn, _get_settings())
    except PassLockedError as e:
        return _error_json("pass_locked", str(e), status_code=409)
    except StoreReadError as e:
        return _error_json("store_read_failed", str(e), status_code=500)
    finally:
        conn.close()
    return MatchPassResponse(**report.to_dict())


@app.post(
    "/passes/spreads",
    response_model=SpreadPassResponse,
    responses={409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def trigger_spread_pass():
    """Run one spread pass and replace the active spread set."""
    conn = _get_conn()
    try:
        report = run_spread_pass(conn, _get_settings())
    except PassLockedError as e:
        return _error_json("pass_locked", str(e), status_code=409)
    except StoreReadError as e:
        return _error_json("store_read_failed", str(e), status_code=500)
    finally:
        conn.close()
    return SpreadPassResponse(**report.to_dict())


@app.get(
    "/passes/{kind}/latest",
    response_model=PassRunResponse,
    responses={404: {"model": ErrorResponse}},
)
def latest_pass(kind: str):
    """Most recent pass of a kind (match or spreads). 404 if none recorded."""
    if kind not in PASS_KINDS:
        return _error_json("unknown_kind", f"Unknown pass kind: {kind}")
    conn = _get_conn()
    try:
        run = get_last_pass_run(conn, kind)
    finally:
        conn.close()
    if not run:
        return _error_json("not_found", f"No {kind} pass recorded")
    return PassRunResponse(**run)


@app.get("/spreads", response_model=SpreadsListResponse)
def spreads_list(
    include_expired: bool = Query(False, description="Include active rows past expires_at"),
    limit: int = Query(100, ge=1, le=1000),
) -> SpreadsListResponse:
    """Active spreads, highest skew first, with the last spread pass for staleness display."""
    conn = _get_conn()
    try:
        rows = list_spreads(conn, now=None if include_expired else now_ms(), limit=limit)
        last = get_last_pass_run(conn, "spreads")
    finally:
        conn.close()
    items = [SpreadItem(**s.model_dump(mode="json")) for s in rows]
    return SpreadsListResponse(
        spreads=items,
        total=len(items),
        last_pass=PassRunResponse(**last) if last else None,
    )


@app.get("/mappings", response_model=MappingsListResponse)
def mappings_list(
    verified: bool = Query(False, description="Only manually verified mappings"),
    limit: int = Query(200, ge=1, le=5000),
) -> MappingsListResponse:
    conn = _get_conn()
    try:
        rows = list_mappings(conn, verified_only=verified, limit=limit)
    finally:
        conn.close()
    return MappingsListResponse(mappings=[MappingItem(**r) for r in rows], total=len(rows))


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    settings: Settings | None = None,
    profile: str | None = None,
) -> None:
    configure(settings=settings, profile=profile)
    import uvicorn

    uvicorn.run("skewdesk.api.main:app", host=host, port=port, reload=False)
