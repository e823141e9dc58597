"""Read market/price rows from JSON or JSON-lines files (ingestion hand-off)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

log = structlog.get_logger(__name__)


def read_rows(path: str | Path) -> list[dict[str, Any]]:
    """Rows from a JSON array, a {"data": [...]} object, or one JSON object per line."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix in (".jsonl", ".ndjson"):
        return [json.loads(line) for line in text.splitlines() if line.strip()]
    data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("data", [data])
    return [row for row in data if isinstance(row, dict)]


def parse_rows(rows: list[dict[str, Any]], model: type[BaseModel]) -> tuple[list[Any], int]:
    """Validate rows into model instances. Returns (valid, skipped count)."""
    valid = []
    skipped = 0
    for row in rows:
        try:
            valid.append(model(**row))
        except ValidationError as e:
            skipped += 1
            log.warning("skip_row", model=model.__name__, market_id=row.get("market_id"), error=str(e))
    return valid, skipped
