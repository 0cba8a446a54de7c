"""
Time-series primitives shared by the transformer and the window statistics.

A series is a list of SeriesPoint in ascending date order. Dates are kept as
the ISO strings the data provider hands us ("YYYY-MM-DD" or "YYYY-MM") and
parsed on demand, so an unparseable date degrades one computation instead of
failing the whole load.
"""
from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

import polars as pl

DateLike = Union[str, date]


@dataclass(frozen=True)
class SeriesPoint:
    """One (date, value) observation. `value` is None when the provider had no reading."""
    date: DateLike
    value: Optional[float]

    @property
    def is_finite(self) -> bool:
        return self.value is not None and math.isfinite(self.value)


ObservationSeries = list[SeriesPoint]
DerivedSeries = list[SeriesPoint]


def parse_date(raw: DateLike) -> Optional[date]:
    """Parse "YYYY-MM-DD", "YYYY-MM" or a date object. Returns None if unparseable."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def shift_months(d: date, months: int) -> date:
    """Move `d` by a number of calendar months, clamping the day to the month length."""
    total = d.year * 12 + (d.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def to_float(raw) -> Optional[float]:
    """Coerce a provider value ("1.23", 1.23, ".", None) to a finite float or None."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def series_to_frame(series: list[SeriesPoint]) -> pl.DataFrame:
    """Chart-ready frame with a parsed `date` column (null where unparseable) and `value`."""
    return pl.DataFrame(
        {
            "date": [parse_date(p.date) for p in series],
            "value": [p.value if p.is_finite else None for p in series],
        },
        schema={"date": pl.Date, "value": pl.Float64},
    )
