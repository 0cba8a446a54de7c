"""
Series cache store — the on-disk JSON cache of FRED histories.

Schema (series keyed by catalog indicator key, with the FRED id alongside):

    {
      "generated_at": "<ISO timestamp>",
      "series": {
        "<INDICATOR_KEY>": {
          "id": "<FRED id>",
          "last_updated": "<ISO timestamp>",
          "observations": [{"date": "YYYY-MM-DD", "value": "<str|number|null>"}, ...]
        }
      }
    }

This is the data-acquisition side of the radar: it answers
"current value of indicator X" and "full history of indicator X".
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from config.settings import ScoringConfig
from processing.history_stats import DerivedSeriesCache
from processing.series import ObservationSeries, SeriesPoint, to_float
from processing.transforms import latest_value, transform

logger = logging.getLogger(__name__)


class SeriesCacheStore:
    """
    Read/write access to the JSON series cache.

    Usage:
        store = SeriesCacheStore.load(SERIES_CACHE_PATH)
        history = store.get_observation_series("M2_GROWTH")
        current = store.get_current_value("M2_GROWTH", config)
    """

    def __init__(
        self,
        series: Optional[Mapping[str, ObservationSeries]] = None,
        generated_at: Optional[str] = None,
        series_ids: Optional[Mapping[str, str]] = None,
    ):
        self._series: dict[str, ObservationSeries] = dict(series or {})
        self._series_ids: dict[str, str] = dict(series_ids or {})
        self.generated_at = generated_at
        self._derived = DerivedSeriesCache()

    # ─── Loading / Saving ────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: Path) -> SeriesCacheStore:
        """Load a cache file. Missing or malformed files give an empty store."""
        if not path.exists():
            logger.warning("Series cache %s not found — starting empty", path)
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read series cache %s: %s", path, exc)
            return cls()
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict) -> SeriesCacheStore:
        series: dict[str, ObservationSeries] = {}
        series_ids: dict[str, str] = {}
        for key, entry in (raw.get("series") or {}).items():
            if not isinstance(entry, dict):
                continue
            points = [
                SeriesPoint(o["date"], to_float(o.get("value")))
                for o in entry.get("observations") or []
                if isinstance(o, dict) and o.get("date")
            ]
            points.sort(key=lambda p: str(p.date))
            series[key] = points
            if entry.get("id"):
                series_ids[key] = entry["id"]
        return cls(series=series, generated_at=raw.get("generated_at"), series_ids=series_ids)

    def to_dict(self) -> dict:
        now_iso = datetime.now(timezone.utc).isoformat()
        return {
            "generated_at": self.generated_at or now_iso,
            "series": {
                key: {
                    "id": self._series_ids.get(key, key),
                    "last_updated": self.generated_at or now_iso,
                    "observations": [
                        {"date": str(p.date), "value": p.value} for p in points
                    ],
                }
                for key, points in self._series.items()
            },
        }

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(self.to_dict(), fh, indent=2)
        logger.info("Saved %d series to %s", len(self._series), path)

    # ─── Accessors ───────────────────────────────────────────────────────────

    def keys(self) -> list[str]:
        return sorted(self._series)

    def get_observation_series(self, key: str) -> ObservationSeries:
        """Raw history for one indicator, ascending. Empty if not cached."""
        return list(self._series.get(key, []))

    def get_derived_series(self, key: str, config: ScoringConfig) -> ObservationSeries:
        """History with the indicator's catalog transform applied (memoised per key)."""
        spec = config.get_indicator(key)
        if spec is None:
            return [p for p in self.get_observation_series(key) if p.is_finite]
        return self._derived.get_or_compute(
            key, lambda: transform(self.get_observation_series(key), spec.transform)
        )

    def get_current_value(self, key: str, config: ScoringConfig) -> Optional[float]:
        """Latest reading on the indicator's scoring scale, or None."""
        return latest_value(self.get_derived_series(key, config))

    def current_values(self, config: ScoringConfig) -> dict[str, Optional[float]]:
        return {spec.key: self.get_current_value(spec.key, config) for spec in config.macro}

    def cache_age_days(self, now: Optional[datetime] = None) -> Optional[float]:
        if not self.generated_at:
            return None
        try:
            generated = datetime.fromisoformat(self.generated_at.replace("Z", "+00:00"))
        except ValueError:
            return None
        if generated.tzinfo is None:
            generated = generated.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return (now - generated).total_seconds() / 86400.0
