"""
Time-Series Transformer — raw observations → the series an indicator is scored on.

Supported transforms:
  RAW                  passthrough, non-finite readings dropped
  YOY_PERCENT          % change vs the latest point at or before d − 12 months
  PCT_CHANGE_N_MONTHS  same as YOY with an n-month lookback
  TRAILING_AVERAGE_N   mean of the last n readings, optionally divided (e.g. → thousands)

The input must be in ascending date order. Anchors are located by calendar
date, scanning backwards, not by array offset, so weekly, monthly and gappy
series all resolve to the nearest prior-or-equal observation. Points that
lack a valid anchor or a full window are omitted, never extrapolated.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from config.settings import SeriesTransform, TransformKind
from processing.series import DerivedSeries, ObservationSeries, SeriesPoint, parse_date, shift_months

logger = logging.getLogger(__name__)


def _find_anchor(
    series: ObservationSeries,
    dates: list,
    index: int,
    cutoff,
) -> Optional[SeriesPoint]:
    """Latest point before `index` whose date is on or before `cutoff`."""
    for j in range(index - 1, -1, -1):
        d = dates[j]
        if d is None:
            continue
        if d <= cutoff:
            return series[j]
    return None


def pct_change_months(series: ObservationSeries, months: int) -> DerivedSeries:
    """Percent change against the observation `months` calendar months earlier."""
    dates = [parse_date(p.date) for p in series]
    out: DerivedSeries = []

    for i, point in enumerate(series):
        d = dates[i]
        if d is None or not point.is_finite:
            continue
        anchor = _find_anchor(series, dates, i, shift_months(d, -months))
        if anchor is None or not anchor.is_finite or anchor.value == 0:
            continue
        out.append(SeriesPoint(point.date, (point.value - anchor.value) / anchor.value * 100.0))

    return out


def trailing_average(series: ObservationSeries, window: int, divisor: float = 1.0) -> DerivedSeries:
    """Mean of the trailing `window` readings, emitted only where every reading is finite."""
    if window < 1 or len(series) < window:
        return []

    values = np.array(
        [p.value if p.is_finite else np.nan for p in series], dtype=float
    )
    windows = np.lib.stride_tricks.sliding_window_view(values, window)
    complete = np.isfinite(windows).all(axis=1)
    means = windows.mean(axis=1) / divisor

    out: DerivedSeries = []
    for k in np.flatnonzero(complete):
        i = int(k) + window - 1
        out.append(SeriesPoint(series[i].date, float(means[k])))
    return out


def transform(series: ObservationSeries, kind: SeriesTransform) -> DerivedSeries:
    """
    Apply one catalog transform to an ascending observation series.

    Args:
        series: Raw observations, strictly increasing by date
        kind: The indicator's SeriesTransform

    Returns:
        Derived series in the same order, never longer than the input.
    """
    if not series:
        return []

    if kind.kind == TransformKind.RAW:
        return [p for p in series if p.is_finite]

    if kind.kind == TransformKind.YOY_PERCENT:
        return pct_change_months(series, 12)

    if kind.kind == TransformKind.PCT_CHANGE_N_MONTHS:
        return pct_change_months(series, kind.months)

    if kind.kind == TransformKind.TRAILING_AVERAGE_N:
        return trailing_average(series, kind.window, kind.divisor)

    logger.debug("Unknown transform %r — returning empty series", kind.kind)
    return []


def latest_value(series: DerivedSeries) -> Optional[float]:
    """Last finite value of a derived series, or None."""
    for point in reversed(series):
        if point.value is not None and math.isfinite(point.value):
            return point.value
    return None
