"""
Composite Aggregator and Contribution Decomposer.

The macro block and the valuation block are each a weighted mean of their
indicator stresses. The composite blends the two blocks with the configured
block weights when both have data, and falls back to whichever block has data
otherwise. The decomposer attributes the composite back to each indicator
using exactly the same branching, so the contributions sum to the composite.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Union

from config.settings import Block, IndicatorSpec, ScoringConfig, ValuationSpec
from processing.normalizer import normalize_indicator, normalize_valuation

logger = logging.getLogger(__name__)

AnySpec = Union[IndicatorSpec, ValuationSpec]
ValueMap = Mapping[str, Optional[float]]


@dataclass
class IndicatorStress:
    """Stress for one indicator that made it into its block."""
    key: str
    label: str
    block: Block
    tier: Optional[int]
    stress: float
    weight: float


@dataclass
class BlockResult:
    """Weighted stress of one block. `score` is None when no indicator had data."""
    block: Block
    score: Optional[float]
    total_weight: float
    details: list[IndicatorStress] = field(default_factory=list)

    @property
    def has_score(self) -> bool:
        return self.score is not None


@dataclass
class CompositeResult:
    score: Optional[float]
    macro: BlockResult
    valuation: BlockResult


@dataclass
class Contribution:
    """Points of the composite attributable to one indicator."""
    key: str
    label: str
    block: Block
    tier: Optional[int]
    stress: float
    points: float
    share_pct: float


def _stress_for(spec: AnySpec, value: Optional[float], warn_max: float) -> Optional[float]:
    if isinstance(spec, ValuationSpec):
        return normalize_valuation(spec, value, warn_max)
    return normalize_indicator(spec, value, warn_max)


def compute_block(
    specs: Sequence[AnySpec],
    values: ValueMap,
    warn_max: float,
    block: Block = Block.MACRO,
) -> BlockResult:
    """
    Weighted mean stress over one block.

    Indicators without a usable reading, and indicators with zero weight, are
    left out of both the numerator and the denominator.
    """
    weighted_sum = 0.0
    total_weight = 0.0
    details: list[IndicatorStress] = []

    for spec in specs:
        stress = _stress_for(spec, values.get(spec.key), warn_max)
        if stress is None or spec.weight <= 0:
            logger.debug("%s excluded from %s block", spec.key, block.value)
            continue
        weighted_sum += stress * spec.weight
        total_weight += spec.weight
        details.append(IndicatorStress(
            key=spec.key,
            label=spec.label,
            block=block,
            tier=spec.tier if isinstance(spec, IndicatorSpec) else None,
            stress=stress,
            weight=spec.weight,
        ))

    score = weighted_sum / total_weight if total_weight > 0 else None
    return BlockResult(block=block, score=score, total_weight=total_weight, details=details)


def effective_block_weights(
    config: ScoringConfig, macro: BlockResult, valuation: BlockResult,
) -> tuple[float, float]:
    """
    Weight each block carries in the composite.

    Both blocks present: the configured weights, as configured (not renormalised).
    One block present: that block carries the whole composite.
    """
    if macro.has_score and valuation.has_score:
        return config.macro_block_weight, config.valuation_block_weight
    if macro.has_score:
        return 1.0, 0.0
    if valuation.has_score:
        return 0.0, 1.0
    return 0.0, 0.0


def compute_composite(
    config: ScoringConfig,
    macro_values: ValueMap,
    valuation_values: ValueMap,
) -> CompositeResult:
    """Blend the macro and valuation blocks into one 0–100 composite."""
    macro = compute_block(config.macro, macro_values, config.warn_max, Block.MACRO)
    valuation = compute_block(
        config.valuation, valuation_values, config.warn_max, Block.VALUATION
    )

    if not macro.has_score and not valuation.has_score:
        return CompositeResult(score=None, macro=macro, valuation=valuation)

    macro_w, val_w = effective_block_weights(config, macro, valuation)
    score = (macro.score or 0.0) * macro_w + (valuation.score or 0.0) * val_w

    return CompositeResult(
        score=max(0.0, min(100.0, score)),
        macro=macro,
        valuation=valuation,
    )


def compute_contributions(
    config: ScoringConfig,
    macro_values: ValueMap,
    valuation_values: ValueMap,
    composite: Optional[float],
) -> list[Contribution]:
    """
    Rank indicators by how many composite points they account for.

    Returns an empty list when the composite is missing or not positive.
    Entries contributing zero points are omitted. Sorted by points
    descending, ties broken by key.
    """
    if composite is None or composite <= 0:
        return []

    macro = compute_block(config.macro, macro_values, config.warn_max, Block.MACRO)
    valuation = compute_block(
        config.valuation, valuation_values, config.warn_max, Block.VALUATION
    )
    macro_w, val_w = effective_block_weights(config, macro, valuation)

    raw_points: list[tuple[IndicatorStress, float]] = []
    for block_result, block_weight in ((macro, macro_w), (valuation, val_w)):
        if block_result.total_weight <= 0:
            continue
        for d in block_result.details:
            points = (d.stress * d.weight / block_result.total_weight) * block_weight
            if points > 0:
                raw_points.append((d, points))

    # Block weights summing above 1 can push the blend past the 100 clamp
    raw_total = sum(points for _, points in raw_points)
    scale = composite / raw_total if raw_total > composite else 1.0

    contributions: list[Contribution] = []
    for d, points in raw_points:
        points *= scale
        contributions.append(Contribution(
            key=d.key,
            label=d.label,
            block=d.block,
            tier=d.tier,
            stress=d.stress,
            points=points,
            share_pct=points / composite * 100.0,
        ))

    contributions.sort(key=lambda c: (-c.points, c.key))
    return contributions
