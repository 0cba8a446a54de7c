"""
Bootstrap band around the composite.

Resamples, with replacement, the indicators that currently have a reading in
each block and recomputes the composite for every draw. The spread of those
composites shows how much the score leans on a handful of inputs. This is a
descriptive sensitivity band, not a statistical confidence interval.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np

from config.settings import Block, ScoringConfig
from processing.composite import compute_block, compute_composite, effective_block_weights

logger = logging.getLogger(__name__)


@dataclass
class BootstrapBand:
    low: float
    median: float
    high: float
    level: float
    n_resamples: int


def bootstrap_composite(
    config: ScoringConfig,
    macro_values: Mapping[str, Optional[float]],
    valuation_values: Mapping[str, Optional[float]],
    n_resamples: int = 500,
    seed: Optional[int] = None,
    level: float = 0.9,
) -> Optional[BootstrapBand]:
    """
    Percentile band of the composite under indicator resampling.

    Returns None when the composite itself cannot be computed.
    """
    if n_resamples < 1 or not 0 < level < 1:
        raise ValueError("n_resamples must be >= 1 and level in (0, 1)")

    base = compute_composite(config, macro_values, valuation_values)
    if base.score is None:
        return None

    rng = np.random.default_rng(seed)
    macro_used = [s for s in config.macro if s.key in {d.key for d in base.macro.details}]
    val_used = [s for s in config.valuation if s.key in {d.key for d in base.valuation.details}]

    scores = np.empty(n_resamples)
    for i in range(n_resamples):
        macro_draw = (
            tuple(macro_used[j] for j in rng.integers(0, len(macro_used), len(macro_used)))
            if macro_used else ()
        )
        val_draw = (
            tuple(val_used[j] for j in rng.integers(0, len(val_used), len(val_used)))
            if val_used else ()
        )
        macro = compute_block(macro_draw, macro_values, config.warn_max)
        valuation = compute_block(val_draw, valuation_values, config.warn_max, Block.VALUATION)
        macro_w, val_w = effective_block_weights(config, macro, valuation)
        score = (macro.score or 0.0) * macro_w + (valuation.score or 0.0) * val_w
        scores[i] = min(100.0, max(0.0, score))

    tail = (1.0 - level) / 2 * 100
    low, median, high = np.percentile(scores, [tail, 50.0, 100.0 - tail])
    logger.debug(
        "Bootstrap (%d draws): composite %.1f, band %.1f–%.1f",
        n_resamples, base.score, low, high,
    )
    return BootstrapBand(
        low=float(low), median=float(median), high=float(high),
        level=level, n_resamples=n_resamples,
    )
