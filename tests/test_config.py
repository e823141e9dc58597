"""Config loading and profile overlays."""

from skewdesk.config import Settings, get_settings, load_config


def test_defaults_without_config(tmp_path):
    assert load_config(config_dir=tmp_path) == {}
    s = get_settings(config_dir=tmp_path)
    assert s.match_threshold == 0.4
    assert s.min_skew_percent == 1.0
    assert s.spread_expiry_ms == 300_000
    assert s.dedup_tolerance == 0.1
    assert s.parlay_enabled
    assert s.lock_ttl_ms == 600_000


def test_profile_overlay_deep_merges(tmp_path):
    (tmp_path / "default.toml").write_text(
        '[storage]\ndb_path = "data/a.duckdb"\n\n[spreads]\nmin_skew_percent = 1.0\nexpiry_sec = 300\n\n'
        '[spreads.parlay]\nenabled = true\nmin_skew_percent = 2.0\n'
    )
    (tmp_path / "dev.toml").write_text("[spreads]\nexpiry_sec = 60\n\n[spreads.parlay]\nenabled = false\n")
    s = get_settings("dev", config_dir=tmp_path)
    assert s.db_path == "data/a.duckdb"
    assert s.min_skew_percent == 1.0
    assert s.spread_expiry_ms == 60_000
    assert not s.parlay_enabled
    assert s.parlay_min_skew_percent == 2.0


def test_missing_profile_falls_back_to_default(tmp_path):
    (tmp_path / "default.toml").write_text("[matching]\nthreshold = 0.55\n")
    assert get_settings("nope", config_dir=tmp_path).match_threshold == 0.55


def test_from_dict_sections():
    s = Settings.from_dict({"logging": {"level": "debug"}, "matching": {"platforms": ["kalshi"]}})
    assert s.logging_level == "DEBUG"
    assert s.match_platforms == ["kalshi"]
    assert s.match_categories == []
