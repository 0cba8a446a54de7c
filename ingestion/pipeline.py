"""
Refresh pipeline — parallel async download of every FRED-backed indicator.

Runs one fetch task per catalog entry with a FRED id, bounded by a
semaphore to respect the API's rate limits, then writes:
  - the JSON series cache read by the radar (and the dashboard)
  - a zstd parquet snapshot of all observations for offline inspection
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import polars as pl

from config.settings import (
    FRED_HISTORY_START,
    SERIES_CACHE_PATH,
    SNAPSHOT_DIR,
    IndicatorSpec,
    ScoringConfig,
)
from ingestion.cache_store import SeriesCacheStore
from ingestion.fetchers.base import BaseFetcher
from ingestion.fetchers.fred import FredFetcher
from processing.series import ObservationSeries

logger = logging.getLogger(__name__)

# FRED tolerates ~8 concurrent connections
_FRED_CONCURRENCY = 8


class RefreshPipeline:
    """
    Parallel async refresh of the series cache.

    Usage:
        pipeline = RefreshPipeline(config, fred_api_key="your_key")
        store = await pipeline.run()
    """

    def __init__(
        self,
        config: ScoringConfig,
        fred_api_key: Optional[str] = None,
        cache_path: Path = SERIES_CACHE_PATH,
        snapshot_dir: Optional[Path] = SNAPSHOT_DIR,
        start_date: str = FRED_HISTORY_START,
        fetcher: Optional[BaseFetcher] = None,
    ):
        self._config = config
        # 15s per-request timeout
        self._fetcher = fetcher or FredFetcher(api_key=fred_api_key, timeout=15.0)
        self._cache_path = cache_path
        self._snapshot_dir = snapshot_dir
        self._start_date = start_date

        # Semaphore, lock and per-run results are created in run() so each run
        # starts clean and binds to the running event loop
        self._sem: Optional[asyncio.Semaphore] = None
        self._lock: Optional[asyncio.Lock] = None
        self._series: dict[str, ObservationSeries] = {}
        self._errors: list[dict] = []

    async def run(self) -> SeriesCacheStore:
        """Fetch every FRED-backed indicator and persist the cache."""
        self._sem = asyncio.Semaphore(_FRED_CONCURRENCY)
        self._lock = asyncio.Lock()
        self._series = {}
        self._errors = []
        specs = self._config.fred_indicators()

        logger.info("=" * 70)
        logger.info("REFRESH START: %d FRED series (concurrency=%d)", len(specs), _FRED_CONCURRENCY)
        logger.info("=" * 70)

        start_ts = datetime.now(timezone.utc)
        await asyncio.gather(*(self._fetch_with_semaphore(spec) for spec in specs))
        elapsed = (datetime.now(timezone.utc) - start_ts).total_seconds()

        store = SeriesCacheStore(
            series=self._series,
            generated_at=datetime.now(timezone.utc).isoformat(),
            series_ids={spec.key: spec.fred_id for spec in specs},
        )
        if self._series:
            store.save(self._cache_path)
            self._write_snapshot()
        else:
            logger.warning("No series collected — cache left untouched")

        if self._errors:
            logger.warning(
                "%d series failed: %s",
                len(self._errors), ", ".join(e["key"] for e in self._errors),
            )

        logger.info(
            "REFRESH COMPLETE: %d series, %d errors in %.1f seconds",
            len(self._series), len(self._errors), elapsed,
        )
        return store

    async def _fetch_with_semaphore(self, spec: IndicatorSpec) -> None:
        """Acquire the semaphore, fetch, record the result under lock."""
        async with self._sem:
            series = await self._fetcher.fetch_series(spec.fred_id, self._start_date)

        async with self._lock:
            if any(p.is_finite for p in series):
                self._series[spec.key] = series
            else:
                self._errors.append({
                    "key": spec.key,
                    "series_id": spec.fred_id,
                    "error": "no numeric observations",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                })
                logger.error("FAIL: %s (%s) — no numeric observations", spec.key, spec.fred_id)

    def _write_snapshot(self) -> Optional[Path]:
        if self._snapshot_dir is None:
            return None
        rows = [
            {"key": key, "date": str(p.date), "value": p.value}
            for key, series in self._series.items()
            for p in series
        ]
        df = pl.DataFrame(rows, schema={"key": pl.Utf8, "date": pl.Utf8, "value": pl.Float64})

        self._snapshot_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        path = self._snapshot_dir / f"observations_{timestamp}.parquet"
        df.write_parquet(path, compression="zstd")
        logger.info("Snapshot: %s (%d rows)", path, len(df))
        return path
