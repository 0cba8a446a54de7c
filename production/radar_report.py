"""
Radar Report — one snapshot of the composite, its drivers, and indicator history.

This is the orchestration layer between the data store and whatever renders
the numbers (CLI today, the dashboard front end via JSON). It pulls current
values through the normalizer/aggregator path and full histories through the
transformer/statistics path; the two paths share only the catalog.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional

from config.settings import ScoringConfig, format_value
from ingestion.cache_store import SeriesCacheStore
from processing.composite import CompositeResult, Contribution, compute_composite, compute_contributions
from processing.history_stats import HistoryStats, PeriodWindow, compute_stats, select_period
from processing.normalizer import normalize_indicator, normalize_valuation
from processing.resampling import BootstrapBand, bootstrap_composite
from processing.risk_labels import (
    Coverage,
    cache_freshness,
    compute_coverage,
    labor_stress_label,
    recession_risk_label,
    regime_label,
    stress_verdict_label,
    valuation_risk_label,
)
from processing.series import DerivedSeries

logger = logging.getLogger(__name__)

TOP_CONTRIBUTIONS = 5


@dataclass
class IndicatorReading:
    key: str
    label: str
    value: Optional[float]
    display: str
    stress: Optional[float]
    verdict: str
    source: str  # "fred" or "manual"


@dataclass
class IndicatorHistory:
    key: str
    label: str
    window: PeriodWindow
    series: DerivedSeries
    stats: Optional[HistoryStats]


@dataclass
class RadarReport:
    """Everything the dashboard shows for one point in time."""
    composite: CompositeResult
    contributions: list[Contribution]
    readings: list[IndicatorReading]
    coverage: Coverage
    regime: str
    recession_risk: str
    valuation_risk: str
    labor_stress: str
    cache_age_days: Optional[float]
    cache_freshness: str
    bootstrap: Optional[BootstrapBand] = None
    history: list[IndicatorHistory] = field(default_factory=list)

    @property
    def score(self) -> Optional[float]:
        return self.composite.score


def merge_inputs(
    config: ScoringConfig,
    store: SeriesCacheStore,
    manual: Mapping[str, Optional[float]],
) -> tuple[dict[str, Optional[float]], dict[str, Optional[float]]]:
    """
    Current macro and valuation values: cache first, manual inputs on top.
    """
    macro_values = store.current_values(config)
    valuation_values: dict[str, Optional[float]] = {s.key: None for s in config.valuation}

    for key, value in manual.items():
        if config.get_indicator(key) is not None:
            macro_values[key] = value
        elif config.get_valuation(key) is not None:
            valuation_values[key] = value
        else:
            logger.warning("Ignoring manual input for unknown indicator %s", key)

    unset = [k for k in config.manual_keys() if k not in manual]
    if unset:
        logger.info("No manual reading for %s — scored without them", ", ".join(unset))
    return macro_values, valuation_values


def build_history(
    config: ScoringConfig,
    store: SeriesCacheStore,
    window: PeriodWindow = PeriodWindow.TWELVE_MONTHS,
) -> list[IndicatorHistory]:
    """Per-indicator chart series and history stats for every FRED-backed indicator."""
    out: list[IndicatorHistory] = []
    for spec in config.fred_indicators():
        derived = store.get_derived_series(spec.key, config)
        out.append(IndicatorHistory(
            key=spec.key,
            label=spec.label,
            window=window,
            series=select_period(derived, window),
            stats=compute_stats(derived),
        ))
    return out


def build_report(
    config: ScoringConfig,
    store: SeriesCacheStore,
    manual: Optional[Mapping[str, Optional[float]]] = None,
    window: PeriodWindow = PeriodWindow.TWELVE_MONTHS,
    bootstrap_resamples: int = 0,
    now: Optional[datetime] = None,
) -> RadarReport:
    macro_values, valuation_values = merge_inputs(config, store, manual or {})

    composite = compute_composite(config, macro_values, valuation_values)
    contributions = compute_contributions(
        config, macro_values, valuation_values, composite.score
    )

    readings: list[IndicatorReading] = []
    for spec in config.macro:
        value = macro_values.get(spec.key)
        stress = normalize_indicator(spec, value, config.warn_max)
        readings.append(IndicatorReading(
            key=spec.key, label=spec.label, value=value,
            display=format_value(spec.format, value),
            stress=stress, verdict=stress_verdict_label(stress),
            source="fred" if spec.from_fred else "manual",
        ))
    for spec in config.valuation:
        value = valuation_values.get(spec.key)
        stress = normalize_valuation(spec, value, config.warn_max)
        readings.append(IndicatorReading(
            key=spec.key, label=spec.label, value=value,
            display=format_value(spec.format, value),
            stress=stress, verdict=stress_verdict_label(stress),
            source="manual",
        ))

    band = None
    if bootstrap_resamples > 0:
        band = bootstrap_composite(
            config, macro_values, valuation_values, n_resamples=bootstrap_resamples
        )

    age = store.cache_age_days(now)
    return RadarReport(
        composite=composite,
        contributions=contributions,
        readings=readings,
        coverage=compute_coverage(config, macro_values, valuation_values),
        regime=regime_label(composite.score),
        recession_risk=recession_risk_label(composite.score),
        valuation_risk=valuation_risk_label(config, valuation_values),
        labor_stress=labor_stress_label(macro_values),
        cache_age_days=age,
        cache_freshness=cache_freshness(age),
        bootstrap=band,
        history=build_history(config, store, window),
    )


def print_report(report: RadarReport) -> None:
    """Log a formatted radar report."""
    regime_emoji = {
        "Low stress regime": "🟢",
        "Elevated — monitor": "🟡",
        "High — defensive bias": "🟠",
        "Critical regime": "🔴",
    }

    logger.info("")
    logger.info("=" * 70)
    if report.score is None:
        logger.info("⚪ COMPOSITE STRESS — insufficient data")
    else:
        logger.info(
            "%s COMPOSITE STRESS %.0f/100 — %s",
            regime_emoji.get(report.regime, "⚪"), report.score, report.regime,
        )
    logger.info("=" * 70)

    macro, val = report.composite.macro, report.composite.valuation
    logger.info(
        "  Macro block: %s (weight %.1f)   Valuation block: %s (weight %.1f)",
        f"{macro.score:.1f}" if macro.score is not None else "--", macro.total_weight,
        f"{val.score:.1f}" if val.score is not None else "--", val.total_weight,
    )
    logger.info(
        "  Recession risk: %s   Valuation risk: %s   Labour stress: %s",
        report.recession_risk, report.valuation_risk, report.labor_stress,
    )
    logger.info(
        "  Inputs: %d/%d populated (%.0f%%)%s",
        report.coverage.used, report.coverage.total, report.coverage.ratio * 100,
        " — composite is tentative" if report.coverage.is_tentative else "",
    )
    if report.cache_age_days is not None:
        logger.info(
            "  Cache age: %.1f days (%s)", report.cache_age_days, report.cache_freshness
        )
    if report.bootstrap is not None:
        b = report.bootstrap
        logger.info(
            "  Bootstrap %.0f%% band: %.1f – %.1f (median %.1f, %d draws)",
            b.level * 100, b.low, b.high, b.median, b.n_resamples,
        )

    logger.info("  INDICATORS:")
    for r in report.readings:
        stress = f"{r.stress:5.1f}" if r.stress is not None else "   --"
        logger.info(
            "    %-42s %10s  stress=%s  %-8s [%s]",
            r.label, r.display, stress, r.verdict, r.source,
        )

    if report.contributions:
        logger.info("  WHAT'S DRIVING THE SCORE:")
        for c in report.contributions[:TOP_CONTRIBUTIONS]:
            tier = f" · T{c.tier}" if c.tier else ""
            logger.info(
                "    → %-42s +%.1f pts  (%s%s, %.0f%% of composite)",
                c.label, c.points, c.block.value, tier, c.share_pct,
            )
