"""
Window Statistics & Period Selector.

Slices a derived series to a calendar lookback window for charting and
computes the headline history numbers shown under each indicator: the
current value and its percent change over 3, 6 and 12 months.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from processing.series import DerivedSeries, SeriesPoint, parse_date, shift_months

logger = logging.getLogger(__name__)

STAT_HORIZONS_MONTHS = (3, 6, 12)

# Degraded fallback when the latest date cannot be parsed
_FALLBACK_POINTS = 12


class PeriodWindow(Enum):
    THREE_MONTHS = 3
    SIX_MONTHS = 6
    TWELVE_MONTHS = 12
    FIVE_YEARS = 60
    MAX = None

    @property
    def months(self) -> Optional[int]:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> PeriodWindow:
        """Parse the dashboard button labels: 3M, 6M, 12M, 5Y, MAX."""
        labels = {
            "3M": cls.THREE_MONTHS,
            "6M": cls.SIX_MONTHS,
            "12M": cls.TWELVE_MONTHS,
            "1Y": cls.TWELVE_MONTHS,
            "5Y": cls.FIVE_YEARS,
            "MAX": cls.MAX,
        }
        try:
            return labels[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown period window: {label!r}") from None


@dataclass
class HistoryStats:
    """Current reading plus % change at each horizon (None when no usable anchor)."""
    current: float
    as_of: str
    change_pct: dict[int, Optional[float]] = field(default_factory=dict)

    @property
    def change_3m(self) -> Optional[float]:
        return self.change_pct.get(3)

    @property
    def change_6m(self) -> Optional[float]:
        return self.change_pct.get(6)

    @property
    def change_12m(self) -> Optional[float]:
        return self.change_pct.get(12)


def select_period(series: DerivedSeries, window: PeriodWindow) -> DerivedSeries:
    """
    Points of `series` inside the lookback window, ending at the latest point.

    MAX returns the whole series. If the latest date cannot be parsed, the
    last 12 points are returned instead.
    """
    if window is PeriodWindow.MAX or not series:
        return list(series)

    last = parse_date(series[-1].date)
    if last is None:
        logger.debug(
            "Unparseable last date %r — falling back to last %d points",
            series[-1].date, _FALLBACK_POINTS,
        )
        return list(series[-_FALLBACK_POINTS:])

    cutoff = shift_months(last, -window.months)
    out: DerivedSeries = []
    for p in series:
        d = parse_date(p.date)
        if d is not None and d >= cutoff:
            out.append(p)
    return out


def _anchor_change(series: DerivedSeries, current: float, last, months: int) -> Optional[float]:
    cutoff = shift_months(last, -months)
    # Anchors older than a second horizon are too stale to describe this horizon
    floor = shift_months(last, -2 * months)

    for p in reversed(series):
        d = parse_date(p.date)
        if d is None or d > cutoff:
            continue
        if d <= floor or not p.is_finite or p.value == 0:
            return None
        return (current - p.value) / abs(p.value) * 100.0
    return None


def compute_stats(series: DerivedSeries) -> Optional[HistoryStats]:
    """
    Current value and 3/6/12-month % change for a derived series.

    Returns None with fewer than two points or a non-finite latest value.
    """
    if len(series) < 2:
        return None

    latest = series[-1]
    if latest.value is None or not math.isfinite(latest.value):
        return None
    current = latest.value

    last = parse_date(latest.date)
    changes: dict[int, Optional[float]] = {}
    for months in STAT_HORIZONS_MONTHS:
        changes[months] = (
            _anchor_change(series, current, last, months) if last is not None else None
        )

    return HistoryStats(current=current, as_of=str(latest.date), change_pct=changes)


class DerivedSeriesCache:
    """
    Write-once cache of derived series per indicator key.

    The first writer for a key wins; later lookups return the stored series.
    Safe to share between threads.
    """

    def __init__(self):
        self._series: dict[str, tuple[SeriesPoint, ...]] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: str, compute: Callable[[], DerivedSeries]) -> DerivedSeries:
        with self._lock:
            cached = self._series.get(key)
        if cached is not None:
            return list(cached)

        derived = tuple(compute())
        with self._lock:
            stored = self._series.setdefault(key, derived)
        return list(stored)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._series

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)
