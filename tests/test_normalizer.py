from __future__ import annotations

import math

import pytest

from config.indicators import build_default_config
from config.settings import AmplifierRule, Direction, IndicatorSpec, ValuationCurve, ValuationSpec
from processing.normalizer import (
    effective_buffer,
    effective_span,
    normalize_indicator,
    normalize_valuation,
)


def _spec(**overrides) -> IndicatorSpec:
    fields = dict(
        key="TEST", label="Test", threshold=0.0,
        direction=Direction.BELOW_IS_WORSE, span=1.0, buffer=0.35,
    )
    fields.update(overrides)
    return IndicatorSpec(**fields)


# ── Below-is-worse curve ──────────────────────────────────────────────────────

def test_below_safe_cut_is_zero():
    spec = _spec()
    assert normalize_indicator(spec, 0.35) == pytest.approx(0.0)
    assert normalize_indicator(spec, 5.0) == 0.0


def test_below_buffer_ramp():
    """Halfway through the buffer is halfway to WARN_MAX."""
    assert normalize_indicator(_spec(), 0.175) == pytest.approx(20.0)


def test_below_threshold_hits_warn_max():
    assert normalize_indicator(_spec(), 0.0) == pytest.approx(40.0)


def test_below_past_threshold_ramp():
    assert normalize_indicator(_spec(), -0.5) == pytest.approx(70.0)


def test_below_saturates_beyond_span():
    assert normalize_indicator(_spec(), -1.2) == pytest.approx(100.0)


def test_below_monotonic():
    """Stress never rises as the reading improves."""
    spec = _spec()
    values = [-2.0 + 0.05 * i for i in range(80)]
    stresses = [normalize_indicator(spec, v) for v in values]
    assert all(a >= b for a, b in zip(stresses, stresses[1:]))


# ── Above-is-worse curve ──────────────────────────────────────────────────────

def test_above_curve_mirrors_below():
    spec = _spec(threshold=5.0, direction=Direction.ABOVE_IS_WORSE, span=3.0, buffer=0.0)
    assert normalize_indicator(spec, 3.5) == pytest.approx(0.0)
    assert normalize_indicator(spec, 4.25) == pytest.approx(20.0)
    assert normalize_indicator(spec, 5.0) == pytest.approx(40.0)
    assert normalize_indicator(spec, 6.5) == pytest.approx(70.0)
    assert normalize_indicator(spec, 9.0) == pytest.approx(100.0)


def test_above_monotonic():
    spec = _spec(threshold=5.0, direction=Direction.ABOVE_IS_WORSE, span=3.0)
    values = [0.1 * i for i in range(120)]
    stresses = [normalize_indicator(spec, v) for v in values]
    assert all(a <= b for a, b in zip(stresses, stresses[1:]))


# ── Defaults and amplifiers ───────────────────────────────────────────────────

def test_span_and_buffer_fallbacks():
    spec = _spec(threshold=10.0, span=0.0, buffer=0.0)
    assert effective_span(spec) == 5.0
    assert effective_buffer(spec) == 2.5


def test_small_threshold_span_floor():
    spec = _spec(threshold=0.5, span=-1.0)
    assert effective_span(spec) == 1.0


def test_amplifier_applies_when_condition_holds():
    spec = _spec(amplifier=AmplifierRule(comparison="le", level=0.0, multiplier=1.2))
    assert normalize_indicator(spec, 0.0) == pytest.approx(48.0)
    assert normalize_indicator(spec, -0.5) == pytest.approx(84.0)
    # Buffer zone is above the level, so no amplification there
    assert normalize_indicator(spec, 0.175) == pytest.approx(20.0)


def test_amplifier_capped_at_100():
    spec = _spec(amplifier=AmplifierRule(comparison="le", level=0.0, multiplier=1.2))
    assert normalize_indicator(spec, -0.9) == 100.0


def test_default_sahm_rule_amplifier():
    sahm = build_default_config().get_indicator("SAHM_RULE")
    assert normalize_indicator(sahm, 0.4) == pytest.approx(24.0)
    assert normalize_indicator(sahm, 0.5) == pytest.approx(52.0)
    assert normalize_indicator(sahm, 0.75) == pytest.approx(91.0)


def test_custom_warn_max():
    assert normalize_indicator(_spec(), 0.0, warn_max=50.0) == pytest.approx(50.0)


# ── Missing data ──────────────────────────────────────────────────────────────

@pytest.mark.parametrize("value", [None, math.nan, math.inf, -math.inf])
def test_unusable_values_are_none(value):
    assert normalize_indicator(_spec(), value) is None


def test_missing_spec_is_none():
    assert normalize_indicator(None, 1.0) is None


def test_pure_function():
    spec = _spec()
    assert normalize_indicator(spec, -0.3) == normalize_indicator(spec, -0.3)


# ── Valuation curve ───────────────────────────────────────────────────────────

def test_buffett_bands():
    buffett = build_default_config().get_valuation("BUFFETT")
    assert normalize_valuation(buffett, 100.0) == 0.0
    assert normalize_valuation(buffett, 120.0) == 0.0
    assert normalize_valuation(buffett, 135.0) == pytest.approx(20.0)
    assert normalize_valuation(buffett, 150.0) == pytest.approx(40.0)
    assert normalize_valuation(buffett, 175.0) == pytest.approx(70.0)
    assert normalize_valuation(buffett, 200.0) == pytest.approx(100.0)
    assert normalize_valuation(buffett, 250.0) == 100.0


def test_shiller_watch_band():
    cape = build_default_config().get_valuation("SHILLER_PE")
    assert normalize_valuation(cape, 26.0) == pytest.approx(20.0)


def test_valuation_missing():
    spec = ValuationSpec(key="V", label="V", curve=ValuationCurve(1.0, 2.0, 3.0))
    assert normalize_valuation(spec, None) is None
    assert normalize_valuation(spec, math.nan) is None
    assert normalize_valuation(None, 2.0) is None
