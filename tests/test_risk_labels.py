from __future__ import annotations

import math

import pytest

from config.indicators import build_default_config
from processing.risk_labels import (
    MISSING,
    cache_freshness,
    compute_coverage,
    labor_stress_label,
    recession_risk_label,
    regime_label,
    stress_verdict_label,
    valuation_risk_label,
)


@pytest.mark.parametrize("stress,expected", [
    (0.0, "Low"), (32.9, "Low"), (33.0, "Elevated"), (65.9, "Elevated"), (66.0, "High"),
    (None, MISSING), (math.nan, MISSING),
])
def test_stress_verdict(stress, expected):
    assert stress_verdict_label(stress) == expected


@pytest.mark.parametrize("composite,expected", [
    (5.0, "<10%"), (20.0, "10–25%"), (49.9, "25–40%"), (64.0, "40–60%"),
    (79.0, "60–75%"), (95.0, "75–90%"), (None, MISSING),
])
def test_recession_risk(composite, expected):
    assert recession_risk_label(composite) == expected


def test_regime_rounds_before_banding():
    assert regime_label(30.4) == "Low stress regime"
    assert regime_label(30.6) == "Elevated — monitor"
    assert regime_label(70.0) == "High — defensive bias"
    assert regime_label(71.0) == "Critical regime"
    assert regime_label(None) == "insufficient data"


def test_labor_stress():
    assert labor_stress_label({"INITIAL_CLAIMS": 220.0, "SAHM_RULE": 0.0}) == "Low"
    assert labor_stress_label({"INITIAL_CLAIMS": 350.0, "SAHM_RULE": 0.3}) == "Moderate"
    assert labor_stress_label({"INITIAL_CLAIMS": 450.0, "SAHM_RULE": 0.6}) == "High"
    assert labor_stress_label({"INITIAL_CLAIMS": 450.0}) == MISSING


def test_valuation_risk():
    cfg = build_default_config()
    assert valuation_risk_label(cfg, {"BUFFETT": 175.0, "SHILLER_PE": 26.0}) == "Moderate"
    assert valuation_risk_label(cfg, {"BUFFETT": 100.0}) == "Low"
    assert valuation_risk_label(cfg, {"BUFFETT": 210.0, "SHILLER_PE": 41.0}) == "High"
    assert valuation_risk_label(cfg, {}) == MISSING


def test_coverage_tentative_below_80_percent():
    cfg = build_default_config()
    macro = {s.key: 1.0 for s in cfg.macro}
    full = compute_coverage(cfg, macro, {"BUFFETT": 150.0, "SHILLER_PE": 30.0})
    assert (full.used, full.total) == (12, 12)
    assert not full.is_tentative

    sparse = dict(macro, LEI=None, SAHM_RULE=math.nan)
    partial = compute_coverage(cfg, sparse, {"BUFFETT": None})
    assert partial.used == 8
    assert partial.ratio == pytest.approx(8 / 12)
    assert partial.is_tentative


@pytest.mark.parametrize("age,expected", [
    (None, "unknown"), (0.5, "fresh"), (5.0, "ok"), (20.0, "stale"), (45.0, "very stale"),
])
def test_cache_freshness(age, expected):
    assert cache_freshness(age) == expected
