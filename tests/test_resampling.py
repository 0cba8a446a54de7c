from __future__ import annotations

import pytest

from config.indicators import build_default_config
from processing.composite import compute_composite
from processing.resampling import bootstrap_composite

MACRO = {
    "YIELD_CURVE": -0.3,
    "CREDIT_SPREAD": 3.5,
    "CONSUMER_SENTIMENT": 62.0,
    "M2_GROWTH": 2.0,
    "FIN_STRESS": -0.4,
    "INITIAL_CLAIMS": 240.0,
    "SAHM_RULE": 0.3,
}
VALUATION = {"BUFFETT": 190.0, "SHILLER_PE": 33.0}


def test_band_is_ordered_and_bounded():
    band = bootstrap_composite(build_default_config(), MACRO, VALUATION, n_resamples=300, seed=7)
    assert 0.0 <= band.low <= band.median <= band.high <= 100.0
    assert band.n_resamples == 300
    assert band.level == 0.9


def test_band_brackets_composite():
    cfg = build_default_config()
    composite = compute_composite(cfg, MACRO, VALUATION).score
    band = bootstrap_composite(cfg, MACRO, VALUATION, n_resamples=1000, seed=1, level=0.98)
    assert band.low <= composite <= band.high


def test_seed_is_reproducible():
    cfg = build_default_config()
    a = bootstrap_composite(cfg, MACRO, VALUATION, n_resamples=200, seed=42)
    b = bootstrap_composite(cfg, MACRO, VALUATION, n_resamples=200, seed=42)
    assert a == b


def test_single_indicator_collapses_band():
    cfg = build_default_config()
    band = bootstrap_composite(cfg, {"YIELD_CURVE": 0.0}, {}, n_resamples=50, seed=0)
    assert band.low == pytest.approx(48.0)
    assert band.high == pytest.approx(48.0)


def test_no_composite_no_band():
    assert bootstrap_composite(build_default_config(), {}, {}, seed=0) is None


@pytest.mark.parametrize("kwargs", [{"n_resamples": 0}, {"level": 1.0}, {"level": 0.0}])
def test_bad_arguments(kwargs):
    with pytest.raises(ValueError):
        bootstrap_composite(build_default_config(), MACRO, VALUATION, **kwargs)
