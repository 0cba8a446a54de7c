"""
Stress Normalizer — maps one raw reading onto a 0–100 stress scale.

Macro indicators use a two-segment curve around their threshold:

    safe side                buffer              span past threshold
    ──────────────────┬───────────────────┬───────────────────────┬──────────
          0           │   0 → WARN_MAX    │   WARN_MAX → 100      │   100
                   safeCut            threshold              saturation

Valuation gauges use three bands (calm / watch / danger) with a final
saturation at 100. Both curves share WARN_MAX as the watch/danger pivot.

Missing readings, missing specs, and non-finite values all return None.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from config.settings import Direction, IndicatorSpec, ValuationSpec, WARN_MAX

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def effective_span(spec: IndicatorSpec) -> float:
    if spec.span and spec.span > 0:
        return spec.span
    return max(1.0, abs(spec.threshold) * 0.5)


def effective_buffer(spec: IndicatorSpec) -> float:
    if spec.buffer and spec.buffer > 0:
        return spec.buffer
    return effective_span(spec) * 0.5


def normalize_indicator(
    spec: Optional[IndicatorSpec],
    value: Optional[float],
    warn_max: float = WARN_MAX,
) -> Optional[float]:
    """
    Stress in [0, 100] for one macro reading, or None if it cannot be scored.

    Args:
        spec: Catalog entry for the indicator (None => unknown indicator)
        value: Current reading, already on the indicator's scale
        warn_max: Stress reached exactly at the threshold
    """
    if spec is None or value is None or not math.isfinite(value):
        return None

    t = spec.threshold
    span = effective_span(spec)
    buffer = effective_buffer(spec)

    if spec.direction == Direction.BELOW_IS_WORSE:
        safe_cut = t + buffer
        if value >= safe_cut:
            stress = 0.0
        elif value >= t:
            stress = ((safe_cut - value) / buffer) * warn_max
        else:
            frac = _clamp((t - value) / span, 0.0, 1.0)
            stress = warn_max + frac * (100.0 - warn_max)

    elif spec.direction == Direction.ABOVE_IS_WORSE:
        safe_cut = t - buffer
        if value <= safe_cut:
            stress = 0.0
        elif value <= t:
            stress = ((value - safe_cut) / buffer) * warn_max
        else:
            frac = _clamp((value - t) / span, 0.0, 1.0)
            stress = warn_max + frac * (100.0 - warn_max)

    else:
        logger.debug("%s: unknown direction %r", spec.key, spec.direction)
        return None

    if spec.amplifier is not None and spec.amplifier.applies(value):
        stress = min(100.0, stress * spec.amplifier.multiplier)

    return _clamp(stress)


def normalize_valuation(
    spec: Optional[ValuationSpec],
    value: Optional[float],
    warn_max: float = WARN_MAX,
) -> Optional[float]:
    """Stress in [0, 100] for one valuation reading (calm / watch / danger bands)."""
    if spec is None or value is None or not math.isfinite(value):
        return None

    c = spec.curve
    if value <= c.calm_max:
        stress = 0.0
    elif value <= c.watch_max:
        stress = ((value - c.calm_max) / (c.watch_max - c.calm_max)) * warn_max
    elif value <= c.danger_max:
        stress = warn_max + ((value - c.watch_max) / (c.danger_max - c.watch_max)) * (
            100.0 - warn_max
        )
    else:
        stress = 100.0

    return _clamp(stress)
