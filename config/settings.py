"""
Economic Crash Radar — Configuration

Global scoring constants, storage paths, and the immutable descriptors that
make up the indicator catalog. The catalog itself lives in config/indicators.py.
"""
from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

logger = logging.getLogger(__name__)

# ─── Storage Paths ───────────────────────────────────────────────────────────

DATA_ROOT = Path(
    os.environ.get("CRASH_RADAR_DATA_DIR", Path(__file__).parent.parent / "data")
)
SERIES_CACHE_PATH = DATA_ROOT / "fred_cache.json"
SNAPSHOT_DIR = DATA_ROOT / "snapshots"

CONFIG_ENV_VAR = "CRASH_RADAR_CONFIG"

# ─── FRED ────────────────────────────────────────────────────────────────────

FRED_BASE_URL = "https://api.stlouisfed.org/fred"
FRED_HISTORY_START = "1950-01-01"

# ─── Scoring Constants ───────────────────────────────────────────────────────

# Stress level at which an indicator moves from "watch" into "danger".
# Shared by every curve so that stresses stay comparable.
WARN_MAX = 40.0

MACRO_BLOCK_WEIGHT = 0.65
VALUATION_BLOCK_WEIGHT = 0.35

FORMAT_KINDS = ("pct0", "pct1", "pct2", "plain0", "plain1", "plain2")


# ─── Enums ───────────────────────────────────────────────────────────────────

class Block(str, Enum):
    MACRO = "macro"
    VALUATION = "valuation"


class Direction(str, Enum):
    """Which side of the threshold is the bad side."""
    ABOVE_IS_WORSE = "above"
    BELOW_IS_WORSE = "below"


class TransformKind(str, Enum):
    RAW = "raw"
    YOY_PERCENT = "yoy_percent"
    PCT_CHANGE_N_MONTHS = "pct_change"
    TRAILING_AVERAGE_N = "trailing_average"


# ─── Descriptors ─────────────────────────────────────────────────────────────

_COMPARISONS = {
    "le": lambda v, level: v <= level,
    "lt": lambda v, level: v < level,
    "ge": lambda v, level: v >= level,
    "gt": lambda v, level: v > level,
}


@dataclass(frozen=True)
class AmplifierRule:
    """Multiply the stress when the raw reading satisfies `value <comparison> level`."""
    comparison: str
    level: float
    multiplier: float

    def __post_init__(self) -> None:
        if self.comparison not in _COMPARISONS:
            raise ValueError(f"Unknown amplifier comparison: {self.comparison!r}")
        if self.multiplier < 0:
            raise ValueError("Amplifier multiplier must be >= 0")

    def applies(self, value: float) -> bool:
        return _COMPARISONS[self.comparison](value, self.level)


@dataclass(frozen=True)
class SeriesTransform:
    """How a raw observation series becomes the series the indicator is scored on."""
    kind: TransformKind = TransformKind.RAW
    months: int = 12     # lookback for PCT_CHANGE_N_MONTHS
    window: int = 1      # points averaged for TRAILING_AVERAGE_N
    divisor: float = 1.0  # e.g. 1000 to express claims in thousands

    def __post_init__(self) -> None:
        if self.months < 1 or self.window < 1:
            raise ValueError("Transform lookback must be at least 1")
        if self.divisor == 0:
            raise ValueError("Transform divisor must be non-zero")

    @classmethod
    def raw(cls) -> SeriesTransform:
        return cls(TransformKind.RAW)

    @classmethod
    def yoy_percent(cls) -> SeriesTransform:
        return cls(TransformKind.YOY_PERCENT, months=12)

    @classmethod
    def pct_change(cls, months: int) -> SeriesTransform:
        return cls(TransformKind.PCT_CHANGE_N_MONTHS, months=months)

    @classmethod
    def trailing_average(cls, window: int, divisor: float = 1.0) -> SeriesTransform:
        return cls(TransformKind.TRAILING_AVERAGE_N, window=window, divisor=divisor)


@dataclass(frozen=True)
class IndicatorSpec:
    """One macro indicator in the catalog. Created at config load, never mutated."""
    key: str
    label: str
    threshold: float
    direction: Direction
    span: float
    buffer: float = 0.0   # <= 0 means span / 2
    weight: float = 1.0
    tier: int = 1
    transform: SeriesTransform = field(default_factory=SeriesTransform.raw)
    amplifier: Optional[AmplifierRule] = None
    fred_id: Optional[str] = None  # None => manual input
    format: str = "plain1"
    description: str = ""
    block: Block = Block.MACRO

    def __post_init__(self) -> None:
        if self.tier not in (1, 2):
            raise ValueError(f"{self.key}: tier must be 1 or 2, got {self.tier}")
        if self.weight < 0:
            raise ValueError(f"{self.key}: weight must be >= 0")
        if self.buffer < 0:
            raise ValueError(f"{self.key}: buffer must be >= 0")
        if self.format not in FORMAT_KINDS:
            raise ValueError(f"{self.key}: unknown format {self.format!r}")

    @property
    def from_fred(self) -> bool:
        return self.fred_id is not None


@dataclass(frozen=True)
class ValuationCurve:
    """Calm / watch / danger breakpoints of a valuation stress curve."""
    calm_max: float
    watch_max: float
    danger_max: float

    def __post_init__(self) -> None:
        if not (self.calm_max < self.watch_max < self.danger_max):
            raise ValueError("Valuation breakpoints must be strictly increasing")


@dataclass(frozen=True)
class ValuationSpec:
    """One valuation gauge in the catalog."""
    key: str
    label: str
    curve: ValuationCurve
    weight: float = 1.0
    format: str = "plain1"
    description: str = ""
    block: Block = Block.VALUATION

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError(f"{self.key}: weight must be >= 0")
        if self.format not in FORMAT_KINDS:
            raise ValueError(f"{self.key}: unknown format {self.format!r}")


@dataclass(frozen=True)
class ScoringConfig:
    """The full catalog plus the global scoring constants."""
    macro: tuple[IndicatorSpec, ...]
    valuation: tuple[ValuationSpec, ...]
    warn_max: float = WARN_MAX
    macro_block_weight: float = MACRO_BLOCK_WEIGHT
    valuation_block_weight: float = VALUATION_BLOCK_WEIGHT

    def __post_init__(self) -> None:
        if not 0 < self.warn_max < 100:
            raise ValueError("warn_max must lie strictly between 0 and 100")
        if self.macro_block_weight < 0 or self.valuation_block_weight < 0:
            raise ValueError("Block weights must be >= 0")
        keys = [s.key for s in self.macro] + [s.key for s in self.valuation]
        if len(keys) != len(set(keys)):
            raise ValueError("Indicator keys must be unique across both blocks")

    def get_indicator(self, key: str) -> Optional[IndicatorSpec]:
        for spec in self.macro:
            if spec.key == key:
                return spec
        return None

    def get_valuation(self, key: str) -> Optional[ValuationSpec]:
        for spec in self.valuation:
            if spec.key == key:
                return spec
        return None

    def fred_indicators(self) -> list[IndicatorSpec]:
        return [s for s in self.macro if s.from_fred]

    def manual_keys(self) -> list[str]:
        return [s.key for s in self.macro if not s.from_fred] + [s.key for s in self.valuation]


# ─── Loading ─────────────────────────────────────────────────────────────────

def _transform_from_dict(raw: dict) -> SeriesTransform:
    return SeriesTransform(
        kind=TransformKind(raw.get("kind", "raw")),
        months=int(raw.get("months", 12)),
        window=int(raw.get("window", 1)),
        divisor=float(raw.get("divisor", 1.0)),
    )


def _indicator_from_dict(key: str, raw: dict, base: Optional[IndicatorSpec]) -> IndicatorSpec:
    fields: dict = {}
    for name in ("label", "fred_id", "format", "description"):
        if name in raw:
            fields[name] = raw[name]
    for name in ("threshold", "span", "buffer", "weight"):
        if name in raw:
            fields[name] = float(raw[name])
    if "tier" in raw:
        fields["tier"] = int(raw["tier"])
    if "direction" in raw:
        fields["direction"] = Direction(raw["direction"])
    if "transform" in raw:
        fields["transform"] = _transform_from_dict(raw["transform"])
    if "amplifier" in raw:
        amp = raw["amplifier"]
        fields["amplifier"] = None if amp is None else AmplifierRule(
            comparison=amp["comparison"],
            level=float(amp["level"]),
            multiplier=float(amp["multiplier"]),
        )

    if base is not None:
        return replace(base, **fields)

    missing = {"label", "threshold", "direction", "span"} - fields.keys()
    if missing:
        raise ValueError(f"{key}: new indicator is missing {sorted(missing)}")
    return IndicatorSpec(key=key, **fields)


def _valuation_from_dict(key: str, raw: dict, base: Optional[ValuationSpec]) -> ValuationSpec:
    fields: dict = {}
    for name in ("label", "format", "description"):
        if name in raw:
            fields[name] = raw[name]
    if "weight" in raw:
        fields["weight"] = float(raw["weight"])
    if "curve" in raw:
        c = raw["curve"]
        fields["curve"] = ValuationCurve(
            calm_max=float(c["calm_max"]),
            watch_max=float(c["watch_max"]),
            danger_max=float(c["danger_max"]),
        )

    if base is not None:
        return replace(base, **fields)

    missing = {"label", "curve"} - fields.keys()
    if missing:
        raise ValueError(f"{key}: new valuation is missing {sorted(missing)}")
    return ValuationSpec(key=key, **fields)


def config_from_dict(raw: dict, base: Optional[ScoringConfig] = None) -> ScoringConfig:
    """
    Build a ScoringConfig from a plain dict, overlaying it on `base`.

    Entries absent from `raw` keep the base definition; entries present may
    override any subset of fields. Keys unknown to the base are added.
    """
    if base is None:
        from config.indicators import build_default_config
        base = build_default_config()

    try:
        macro_raw = raw.get("indicators", {})
        macro = [
            _indicator_from_dict(s.key, macro_raw[s.key], s) if s.key in macro_raw else s
            for s in base.macro
        ]
        known = {s.key for s in base.macro}
        macro += [
            _indicator_from_dict(k, v, None) for k, v in macro_raw.items() if k not in known
        ]

        val_raw = raw.get("valuations", {})
        valuation = [
            _valuation_from_dict(s.key, val_raw[s.key], s) if s.key in val_raw else s
            for s in base.valuation
        ]
        known = {s.key for s in base.valuation}
        valuation += [
            _valuation_from_dict(k, v, None) for k, v in val_raw.items() if k not in known
        ]

        return ScoringConfig(
            macro=tuple(macro),
            valuation=tuple(valuation),
            warn_max=float(raw.get("warn_max", base.warn_max)),
            macro_block_weight=float(raw.get("macro_block_weight", base.macro_block_weight)),
            valuation_block_weight=float(
                raw.get("valuation_block_weight", base.valuation_block_weight)
            ),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed scoring config: {exc}") from exc


def load_config(path: Optional[Path] = None) -> ScoringConfig:
    """
    Load the scoring config once at startup.

    With no path (and no CRASH_RADAR_CONFIG env var) the built-in catalog is
    returned. A JSON file overlays the built-in catalog.
    """
    from config.indicators import build_default_config

    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else None

    base = build_default_config()
    if path is None:
        return base

    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    config = config_from_dict(raw, base)
    logger.info(
        "Loaded scoring config from %s: %d macro, %d valuation indicators",
        path, len(config.macro), len(config.valuation),
    )
    return config


def format_value(format_kind: str, value: Optional[float]) -> str:
    """Render a reading the way the dashboard tiles show it."""
    if value is None or not math.isfinite(value):
        return "--"
    digits = int(format_kind[-1]) if format_kind[-1].isdigit() else 1
    if format_kind.startswith("pct"):
        return f"{value:.{digits}f}%"
    return f"{value:.{digits}f}"
