"""
Human-readable labels derived from stresses and the composite.

These are the verdicts the dashboard prints next to the numbers. They carry
no state and never raise; a missing input yields the placeholder label.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Optional

from config.settings import ScoringConfig
from processing.normalizer import normalize_valuation

MISSING = "--"

# Tentative-composite line
COVERAGE_WARNING_RATIO = 0.8

# Composite upper bounds → probability band of a recession within ~12 months
_RECESSION_BANDS: list[tuple[float, str]] = [
    (20, "<10%"),
    (35, "10–25%"),
    (50, "25–40%"),
    (65, "40–60%"),
    (80, "60–75%"),
]

_REGIMES: list[tuple[float, str]] = [
    (30, "Low stress regime"),
    (50, "Elevated — monitor"),
    (70, "High — defensive bias"),
]


def _finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def stress_verdict_label(stress: Optional[float]) -> str:
    if not _finite(stress):
        return MISSING
    if stress < 33:
        return "Low"
    if stress < 66:
        return "Elevated"
    return "High"


def recession_risk_label(composite: Optional[float]) -> str:
    if not _finite(composite):
        return MISSING
    for upper, label in _RECESSION_BANDS:
        if composite < upper:
            return label
    return "75–90%"


def regime_label(composite: Optional[float]) -> str:
    if not _finite(composite):
        return "insufficient data"
    v = round(composite)
    for upper, label in _REGIMES:
        if v <= upper:
            return label
    return "Critical regime"


def labor_stress_label(macro_values: Mapping[str, Optional[float]]) -> str:
    """Blend initial claims (thousands) and the Sahm rule into Low / Moderate / High."""
    claims = macro_values.get("INITIAL_CLAIMS")
    sahm = macro_values.get("SAHM_RULE")
    if not _finite(claims) or not _finite(sahm):
        return MISSING

    claims_stress = max(0.0, min(100.0, (claims - 250.0) * 0.5))
    sahm_stress = max(0.0, min(100.0, sahm * 200.0))
    avg = (claims_stress + sahm_stress) / 2

    if avg < 30:
        return "Low"
    if avg < 60:
        return "Moderate"
    return "High"


def valuation_risk_label(
    config: ScoringConfig,
    valuation_values: Mapping[str, Optional[float]],
) -> str:
    """Weighted mean valuation stress as Low / Moderate / High."""
    weighted = 0.0
    total = 0.0
    for spec in config.valuation:
        s = normalize_valuation(spec, valuation_values.get(spec.key), config.warn_max)
        if s is None or spec.weight <= 0:
            continue
        weighted += s * spec.weight
        total += spec.weight

    if total <= 0:
        return MISSING
    avg = weighted / total
    if avg < 30:
        return "Low"
    if avg < 60:
        return "Moderate"
    return "High"


@dataclass
class Coverage:
    used: int
    total: int

    @property
    def ratio(self) -> float:
        return self.used / self.total if self.total else 0.0

    @property
    def is_tentative(self) -> bool:
        return self.ratio < COVERAGE_WARNING_RATIO


def compute_coverage(
    config: ScoringConfig,
    macro_values: Mapping[str, Optional[float]],
    valuation_values: Mapping[str, Optional[float]],
) -> Coverage:
    used = sum(1 for s in config.macro if _finite(macro_values.get(s.key)))
    used += sum(1 for s in config.valuation if _finite(valuation_values.get(s.key)))
    return Coverage(used=used, total=len(config.macro) + len(config.valuation))


def cache_freshness(age_days: Optional[float]) -> str:
    if not _finite(age_days):
        return "unknown"
    if age_days <= 3:
        return "fresh"
    if age_days <= 10:
        return "ok"
    if age_days <= 30:
        return "stale"
    return "very stale"
