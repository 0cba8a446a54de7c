"""
Economic Crash Radar — Main Entry Point

Modes:
1. refresh — download every FRED-backed indicator into the series cache
2. score   — composite stress score, block scores, drivers and verdicts
3. history — per-indicator chart window and 3/6/12-month changes

Usage:
    # Refresh the cache (requires FRED_API_KEY env var)
    python main.py --mode refresh

    # Score with manual readings for the non-FRED gauges
    python main.py --mode score --set LEI=-2.5 --set BUFFETT=190 --set SHILLER_PE=36

    # Five years of history per indicator
    python main.py --mode history --period 5Y
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import polars as pl

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import SERIES_CACHE_PATH, ScoringConfig, load_config
from ingestion.cache_store import SeriesCacheStore
from ingestion.pipeline import RefreshPipeline
from processing.history_stats import PeriodWindow
from processing.series import series_to_frame
from production.radar_report import build_history, build_report, print_report

logger = logging.getLogger("main")


def parse_manual_inputs(pairs: list[str]) -> dict[str, Optional[float]]:
    """Parse repeated KEY=VALUE arguments. An empty value clears the reading."""
    values: dict[str, Optional[float]] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {pair!r}")
        raw = raw.strip()
        if not raw:
            values[key.strip().upper()] = None
            continue
        try:
            values[key.strip().upper()] = float(raw)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Not a number for {key}: {raw!r}") from None
    return values


async def run_refresh(config: ScoringConfig, cache_path: Path, fred_api_key: Optional[str]) -> None:
    pipeline = RefreshPipeline(config, fred_api_key=fred_api_key, cache_path=cache_path)
    await pipeline.run()


def run_history(config: ScoringConfig, store: SeriesCacheStore, window: PeriodWindow) -> None:
    pl.Config.set_tbl_rows(12)
    for item in build_history(config, store, window):
        print(f"\n{item.label} [{window.name}]")
        if not item.series:
            print("  no history available")
            continue
        print(series_to_frame(item.series))
        if item.stats is None:
            print("  insufficient data for stats")
            continue
        changes = "  ".join(
            f"{h}m: {v:+.1f}%" if v is not None else f"{h}m: --"
            for h, v in item.stats.change_pct.items()
        )
        print(f"  current {item.stats.current:.2f} as of {item.stats.as_of}   {changes}")


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Economic Crash Radar")
    parser.add_argument(
        "--mode",
        choices=["refresh", "score", "history"],
        default="score",
        help="Execution mode",
    )
    parser.add_argument("--fred-key", type=str, default=None, help="FRED API key")
    parser.add_argument("--cache", type=Path, default=SERIES_CACHE_PATH, help="Series cache JSON")
    parser.add_argument("--config", type=Path, default=None, help="JSON catalog override")
    parser.add_argument(
        "--set", dest="manual", action="append", default=[], metavar="KEY=VALUE",
        help="Manual reading (repeatable), e.g. --set LEI=-2.5",
    )
    parser.add_argument("--period", type=str, default="12M", help="3M, 6M, 12M, 5Y or MAX")
    parser.add_argument(
        "--bootstrap", type=int, default=0, metavar="N",
        help="Resamples for the composite sensitivity band (0 = off)",
    )
    args = parser.parse_args()

    try:
        config = load_config(args.config)
        manual = parse_manual_inputs(args.manual)
        window = PeriodWindow.from_label(args.period)
    except (ValueError, OSError, argparse.ArgumentTypeError) as exc:
        parser.error(str(exc))
        return

    if args.mode == "refresh":
        await run_refresh(config, args.cache, args.fred_key)
        return

    store = SeriesCacheStore.load(args.cache)

    if args.mode == "history":
        run_history(config, store, window)
        return

    report = build_report(
        config, store, manual, window=window, bootstrap_resamples=args.bootstrap
    )
    print_report(report)


if __name__ == "__main__":
    asyncio.run(main())
