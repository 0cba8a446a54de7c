from __future__ import annotations

import json

import pytest

from config.indicators import build_default_config
from config.settings import (
    Direction,
    IndicatorSpec,
    ScoringConfig,
    TransformKind,
    ValuationCurve,
    config_from_dict,
    format_value,
    load_config,
)


# ── Default catalog ───────────────────────────────────────────────────────────

def test_default_catalog_shape():
    cfg = build_default_config()
    assert len(cfg.macro) == 10
    assert len(cfg.valuation) == 2
    assert cfg.warn_max == 40.0
    assert cfg.macro_block_weight == 0.65
    assert cfg.valuation_block_weight == 0.35


def test_default_catalog_tiers_and_sources():
    cfg = build_default_config()
    assert {s.tier for s in cfg.macro} == {1, 2}
    assert cfg.get_indicator("LEI").from_fred is False
    assert "LEI" in cfg.manual_keys()
    assert "BUFFETT" in cfg.manual_keys()
    assert len(cfg.fred_indicators()) == 9
    assert cfg.get_indicator("INITIAL_CLAIMS").transform.kind is TransformKind.TRAILING_AVERAGE_N
    assert cfg.get_indicator("NOPE") is None


# ── Loading ───────────────────────────────────────────────────────────────────

def test_load_config_defaults_without_env(monkeypatch):
    monkeypatch.delenv("CRASH_RADAR_CONFIG", raising=False)
    assert load_config() == build_default_config()


def test_load_config_overlay_from_json(tmp_path, monkeypatch):
    monkeypatch.delenv("CRASH_RADAR_CONFIG", raising=False)
    path = tmp_path / "radar.json"
    path.write_text(json.dumps({
        "warn_max": 35,
        "indicators": {
            "CREDIT_SPREAD": {"threshold": 4.5, "weight": 2},
            "UNEMPLOYMENT": {
                "label": "Unemployment Rate", "threshold": 5.0,
                "direction": "above", "span": 2.0, "fred_id": "UNRATE", "tier": 2,
            },
        },
        "valuations": {"SHILLER_PE": {"curve": {"calm_max": 20, "watch_max": 28, "danger_max": 38}}},
    }))

    cfg = load_config(path)
    assert cfg.warn_max == 35.0
    spread = cfg.get_indicator("CREDIT_SPREAD")
    assert spread.threshold == 4.5
    assert spread.weight == 2.0
    assert spread.span == 3.0  # untouched fields keep the built-in value
    new = cfg.get_indicator("UNEMPLOYMENT")
    assert new.direction is Direction.ABOVE_IS_WORSE
    assert new.from_fred
    assert len(cfg.macro) == 11
    assert cfg.get_valuation("SHILLER_PE").curve == ValuationCurve(20.0, 28.0, 38.0)


def test_load_config_from_env(tmp_path, monkeypatch):
    path = tmp_path / "env.json"
    path.write_text(json.dumps({"macro_block_weight": 0.5}))
    monkeypatch.setenv("CRASH_RADAR_CONFIG", str(path))
    assert load_config().macro_block_weight == 0.5


def test_new_indicator_needs_core_fields():
    with pytest.raises(ValueError, match="missing"):
        config_from_dict({"indicators": {"X": {"label": "X"}}})


def test_malformed_amplifier():
    with pytest.raises(ValueError):
        config_from_dict({"indicators": {"YIELD_CURVE": {"amplifier": {"level": 0}}}})


def test_unknown_direction():
    with pytest.raises(ValueError):
        config_from_dict({"indicators": {"YIELD_CURVE": {"direction": "sideways"}}})


# ── Validation ────────────────────────────────────────────────────────────────

def test_invalid_tier():
    with pytest.raises(ValueError, match="tier"):
        IndicatorSpec(key="X", label="X", threshold=0.0,
                      direction=Direction.ABOVE_IS_WORSE, span=1.0, tier=3)


def test_negative_weight():
    with pytest.raises(ValueError):
        IndicatorSpec(key="X", label="X", threshold=0.0,
                      direction=Direction.ABOVE_IS_WORSE, span=1.0, weight=-1.0)


def test_duplicate_keys_rejected():
    cfg = build_default_config()
    with pytest.raises(ValueError, match="unique"):
        ScoringConfig(macro=cfg.macro + (cfg.macro[0],), valuation=cfg.valuation)


def test_breakpoints_must_increase():
    with pytest.raises(ValueError):
        ValuationCurve(150.0, 120.0, 200.0)


def test_warn_max_bounds():
    cfg = build_default_config()
    with pytest.raises(ValueError):
        ScoringConfig(macro=cfg.macro, valuation=cfg.valuation, warn_max=100.0)


# ── Formatting ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("kind,value,expected", [
    ("pct1", -0.26, "-0.3%"),
    ("pct0", 187.4, "187%"),
    ("plain2", 0.123, "0.12"),
    ("plain0", 64.6, "65"),
    ("plain1", None, "--"),
    ("pct1", float("nan"), "--"),
])
def test_format_value(kind, value, expected):
    assert format_value(kind, value) == expected
