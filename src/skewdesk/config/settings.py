"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    directory = _find_config_dir(config_dir)
    default_path = directory / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = directory / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config."""
    raw = load_config(profile, config_dir)
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        storage: dict[str, Any] | None = None,
        matching: dict[str, Any] | None = None,
        spreads: dict[str, Any] | None = None,
        passes: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.storage = storage or {}
        self.matching = matching or {}
        self.spreads = spreads or {}
        self.passes = passes or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            storage=raw.get("storage"),
            matching=raw.get("matching"),
            spreads=raw.get("spreads"),
            passes=raw.get("passes"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def db_path(self) -> str:
        return self.storage.get("db_path", "data/skewdesk.duckdb")

    @property
    def match_threshold(self) -> float:
        return float(self.matching.get("threshold", 0.4))

    @property
    def compatibility_guards(self) -> bool:
        return bool(self.matching.get("compatibility_guards", True))

    @property
    def match_platforms(self) -> list[str]:
        return list(self.matching.get("platforms") or [])

    @property
    def match_categories(self) -> list[str]:
        return list(self.matching.get("categories") or [])

    @property
    def max_markets_per_platform(self) -> int:
        return int(self.matching.get("max_markets_per_platform", 500))

    @property
    def match_sample_size(self) -> int:
        return int(self.matching.get("report_sample_size", 30))

    @property
    def min_skew_percent(self) -> float:
        return float(self.spreads.get("min_skew_percent", 1.0))

    @property
    def spread_expiry_ms(self) -> int:
        return int(float(self.spreads.get("expiry_sec", 300)) * 1000)

    @property
    def dedup_tolerance(self) -> float:
        return float(self.spreads.get("dedup_tolerance", 0.1))

    @property
    def price_max_age_ms(self) -> int:
        return int(float(self.spreads.get("price_max_age_sec", 0)) * 1000)

    @property
    def use_mappings(self) -> bool:
        return bool(self.spreads.get("use_mappings", True))

    @property
    def spread_sample_size(self) -> int:
        return int(self.spreads.get("report_sample_size", 10))

    @property
    def parlay(self) -> dict[str, Any]:
        return self.spreads.get("parlay") or {}

    @property
    def parlay_enabled(self) -> bool:
        return bool(self.parlay.get("enabled", True))

    @property
    def parlay_platform(self) -> str:
        return self.parlay.get("parlay_platform", "kalshi")

    @property
    def singles_platform(self) -> str:
        return self.parlay.get("singles_platform", "azuro")

    @property
    def parlay_min_skew_percent(self) -> float:
        return float(self.parlay.get("min_skew_percent", 2.0))

    @property
    def lock_ttl_ms(self) -> int:
        return int(float(self.passes.get("lock_ttl_sec", 600)) * 1000)

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
