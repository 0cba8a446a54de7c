"""
Indicator Catalog — the macro and valuation gauges behind the composite.

Tier 1 indicators are LEADING (they turn before the cycle does); tier 2 are
CONFIRMING (they move once the slowdown is under way). The tier is
informational only and does not change the scoring.

Each macro indicator is scored against a threshold:
  - `direction` says which side of the threshold is the bad side
  - `buffer` is the neutral zone before the threshold where stress ramps 0 → WARN_MAX
  - `span` is the distance past the threshold where stress ramps WARN_MAX → 100

Valuation gauges use fixed calm / watch / danger bands instead.
"""
from __future__ import annotations

from config.settings import (
    AmplifierRule,
    Direction,
    IndicatorSpec,
    ScoringConfig,
    SeriesTransform,
    ValuationCurve,
    ValuationSpec,
)


# ─── Macro Indicators ────────────────────────────────────────────────────────

INDICATOR_REGISTRY: list[IndicatorSpec] = [

    # ══════════════════════════════════════════════════════════════════════
    # TIER 1 — LEADING
    # ══════════════════════════════════════════════════════════════════════

    IndicatorSpec(
        key="YIELD_CURVE", label="Yield Curve (10Y–3M, %)",
        fred_id="T10Y3M", format="pct1",
        threshold=0.0, direction=Direction.BELOW_IS_WORSE, span=1.0,
        tier=1, weight=1.0,
        # An inverted curve is worse than the linear ramp alone suggests
        amplifier=AmplifierRule(comparison="le", level=0.0, multiplier=1.2),
        description="Treasury 10-year minus 3-month spread.",
    ),
    IndicatorSpec(
        key="CREDIT_SPREAD", label="High Yield Credit Spread (%)",
        fred_id="BAMLH0A0HYM2", format="pct1",
        threshold=5.0, direction=Direction.ABOVE_IS_WORSE, span=3.0,
        tier=1, weight=1.0,
        description="ICE BofA US High Yield OAS.",
    ),
    IndicatorSpec(
        key="CONSUMER_SENTIMENT", label="Consumer Sentiment (UMich)",
        fred_id="UMCSENT", format="plain0",
        threshold=80.0, direction=Direction.BELOW_IS_WORSE, span=20.0,
        tier=1, weight=1.0,
        description="University of Michigan consumer sentiment.",
    ),
    IndicatorSpec(
        key="M2_GROWTH", label="M2 Money Supply YoY (%)",
        fred_id="M2SL", format="pct1",
        transform=SeriesTransform.yoy_percent(),
        threshold=0.0, direction=Direction.BELOW_IS_WORSE, span=5.0,
        tier=1, weight=1.0,
        description="YoY change in M2 money supply.",
    ),
    IndicatorSpec(
        key="LEI", label="Leading Economic Index (6m %Δ)",
        fred_id=None, format="pct1",
        transform=SeriesTransform.pct_change(6),
        threshold=-4.1, direction=Direction.BELOW_IS_WORSE, span=3.0,
        tier=1, weight=1.0,
        description="Six-month percentage change in the Conference Board LEI.",
    ),

    # ══════════════════════════════════════════════════════════════════════
    # TIER 2 — CONFIRMING
    # ══════════════════════════════════════════════════════════════════════

    IndicatorSpec(
        key="FIN_STRESS", label="Financial Stress (NFCI)",
        fred_id="NFCI", format="plain2",
        threshold=0.0, direction=Direction.ABOVE_IS_WORSE, span=0.5,
        tier=2, weight=1.0,
        description="Chicago Fed National Financial Conditions Index.",
    ),
    IndicatorSpec(
        key="INITIAL_CLAIMS", label="Initial Claims (ICSA, 4w MA, thousands)",
        fred_id="ICSA", format="plain1",
        transform=SeriesTransform.trailing_average(4, divisor=1000.0),
        threshold=250.0, direction=Direction.ABOVE_IS_WORSE, span=100.0,
        tier=2, weight=1.0,
        description="Initial jobless claims, 4-week moving average.",
    ),
    IndicatorSpec(
        key="SAHM_RULE", label="Sahm Rule (%)",
        fred_id="SAHMREALTIME", format="plain1",
        threshold=0.5, direction=Direction.ABOVE_IS_WORSE, span=0.5,
        tier=2, weight=1.0,
        # A triggered Sahm rule has historically meant recession already started
        amplifier=AmplifierRule(comparison="ge", level=0.5, multiplier=1.3),
        description="Sahm Rule recession indicator.",
    ),
    IndicatorSpec(
        key="INDUSTRIAL_PRODUCTION", label="Industrial Production YoY (%)",
        fred_id="INDPRO", format="pct1",
        transform=SeriesTransform.yoy_percent(),
        threshold=0.0, direction=Direction.BELOW_IS_WORSE, span=5.0,
        tier=2, weight=1.0,
        description="YoY change in industrial production.",
    ),
    IndicatorSpec(
        key="BUILDING_PERMITS", label="Building Permits YoY (%)",
        fred_id="PERMIT", format="pct1",
        transform=SeriesTransform.yoy_percent(),
        threshold=0.0, direction=Direction.BELOW_IS_WORSE, span=5.0,
        tier=2, weight=1.0,
        description="US building permits, YoY.",
    ),
]


# ─── Valuation Gauges ────────────────────────────────────────────────────────

VALUATION_REGISTRY: list[ValuationSpec] = [
    ValuationSpec(
        key="BUFFETT", label="Buffett Indicator (Mkt Cap / GDP, %)",
        curve=ValuationCurve(calm_max=120.0, watch_max=150.0, danger_max=200.0),
        weight=1.0, format="pct0",
        description="Total US market cap divided by GDP. Danger band > 200%.",
    ),
    ValuationSpec(
        key="SHILLER_PE", label="Shiller CAPE (x)",
        curve=ValuationCurve(calm_max=22.0, watch_max=30.0, danger_max=40.0),
        weight=1.0, format="plain1",
        description="Cyclically adjusted P/E ratio. Danger band > 30.",
    ),
]


def build_default_config() -> ScoringConfig:
    """The built-in catalog with the default WARN_MAX and block weights."""
    return ScoringConfig(
        macro=tuple(INDICATOR_REGISTRY),
        valuation=tuple(VALUATION_REGISTRY),
    )
