from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

from .geometry import EPS, Dimensions3D, Footprint, fit_count
from .models import PalletConfig

logger = logging.getLogger(__name__)


# names used by older pallet configuration files
_PATTERN_ALIASES = {"swap-40-48": "alternating"}


class LayerPattern(str, Enum):
    COLUMN = "column"
    ALTERNATING = "alternating"
    BRICK = "brick"
    PINWHEEL = "pinwheel"

    @classmethod
    def _missing_(cls, value):
        alias = _PATTERN_ALIASES.get(str(value).strip().lower())
        return cls(alias) if alias is not None else None


class LayerOrientation(str, Enum):
    UNROTATED = "unrotated"
    ROTATED = "rotated"


@dataclass(frozen=True)
class PatternSupport:
    requested: LayerPattern
    effective: LayerPattern
    supported: bool


SUPPORTED_PATTERNS = frozenset({LayerPattern.COLUMN, LayerPattern.ALTERNATING})


def pattern_support(pattern: LayerPattern | str) -> PatternSupport:
    """Report whether ``pattern`` is computed as asked or replaced by COLUMN."""
    requested = LayerPattern(pattern)
    if requested in SUPPORTED_PATTERNS:
        return PatternSupport(requested, requested, True)
    return PatternSupport(requested, LayerPattern.COLUMN, False)


@dataclass(frozen=True)
class LayerPlan:
    orientation: LayerOrientation
    count_length: int
    count_width: int
    overhang_length: float
    overhang_width: float
    coverage: float
    exceeds_overhang: bool = False

    @property
    def count(self) -> int:
        return self.count_length * self.count_width


def plan_orientation(
    container: Dimensions3D,
    footprint: Footprint,
    orientation: LayerOrientation,
    max_overhang: float = 0.0,
) -> LayerPlan:
    """Grid one layer of boxes on the pallet deck in a single orientation."""
    if orientation is LayerOrientation.UNROTATED:
        along_length, along_width = container.length, container.width
    else:
        along_length, along_width = container.width, container.length
    count_length = fit_count(footprint.length, along_length)
    count_width = fit_count(footprint.width, along_width)
    overhang_length = max(footprint.length - count_length * along_length, 0.0)
    overhang_width = max(footprint.width - count_width * along_width, 0.0)
    used = count_length * along_length * count_width * along_width
    return LayerPlan(
        orientation=orientation,
        count_length=count_length,
        count_width=count_width,
        overhang_length=overhang_length,
        overhang_width=overhang_width,
        coverage=min(used / footprint.area, 1.0),
        exceeds_overhang=(
            overhang_length > max_overhang + EPS or overhang_width > max_overhang + EPS
        ),
    )


def layout_layer(
    container: Dimensions3D, footprint: Footprint, max_overhang: float = 0.0
) -> LayerPlan:
    """Pick the orientation with the most boxes among those within the overhang limit.

    When neither orientation respects the limit the larger one is returned
    with ``exceeds_overhang`` set; the caller decides whether to use it.
    """
    plans = [
        plan_orientation(container, footprint, orientation, max_overhang)
        for orientation in LayerOrientation
    ]
    valid = [plan for plan in plans if not plan.exceeds_overhang]
    pool = valid or plans
    best = pool[0]
    for plan in pool[1:]:
        if plan.count > best.count:
            best = plan
    return best


@dataclass(frozen=True)
class InterlockFit:
    layer1: LayerPlan
    layer2: LayerPlan

    @property
    def feasible(self) -> bool:
        return self.layer1.count > 0 and self.layer2.count > 0

    @property
    def avg_coverage(self) -> float:
        return (self.layer1.coverage + self.layer2.coverage) / 2


def check_interlock(container: Dimensions3D, footprint: Footprint) -> InterlockFit:
    """Plan the unrotated and rotated layers of an alternating stack."""
    return InterlockFit(
        layer1=plan_orientation(container, footprint, LayerOrientation.UNROTATED),
        layer2=plan_orientation(container, footprint, LayerOrientation.ROTATED),
    )


def compute_num_layers(available_height: float, box_h: float) -> int:
    if box_h <= 0 or available_height <= 0:
        return 0
    return fit_count(available_height, box_h)


def compute_stack_height(num_layers: int, box_h: float, base_height: float) -> float:
    if num_layers <= 0 or box_h <= 0:
        return base_height
    return base_height + num_layers * box_h


@dataclass(frozen=True)
class PalletLayout:
    requested_pattern: LayerPattern
    pattern: LayerPattern
    layer_plans: Tuple[LayerPlan, ...]
    layers: int
    total: int
    height: float
    coverage: float

    @property
    def fell_back(self) -> bool:
        return self.requested_pattern is not self.pattern

    @property
    def first_layer(self) -> LayerPlan:
        return self.layer_plans[0]

    @property
    def count_length(self) -> int:
        return self.first_layer.count_length

    @property
    def count_width(self) -> int:
        return self.first_layer.count_width

    @property
    def per_layer(self) -> int:
        return self.first_layer.count

    @property
    def overhang_length(self) -> float:
        return max(plan.overhang_length for plan in self.layer_plans)

    @property
    def overhang_width(self) -> float:
        return max(plan.overhang_width for plan in self.layer_plans)

    @property
    def exceeds_overhang(self) -> bool:
        return any(plan.exceeds_overhang for plan in self.layer_plans)


def _layer_sequence(plans: Tuple[LayerPlan, ...], layers: int) -> List[LayerPlan]:
    return [plans[idx % len(plans)] for idx in range(layers)]


def stack(
    container: Dimensions3D,
    pallet: PalletConfig,
    pattern: LayerPattern | str = LayerPattern.COLUMN,
) -> PalletLayout:
    """Stack boxes of external size ``container`` up to the pallet's target height."""
    support = pattern_support(pattern)
    if not support.supported:
        logger.debug(
            "Pattern %s is not implemented, using %s",
            support.requested.value,
            support.effective.value,
        )

    if support.effective is LayerPattern.ALTERNATING:
        plans: Tuple[LayerPlan, ...] = (
            plan_orientation(
                container, pallet.footprint, LayerOrientation.UNROTATED, pallet.max_overhang
            ),
            plan_orientation(
                container, pallet.footprint, LayerOrientation.ROTATED, pallet.max_overhang
            ),
        )
    else:
        plans = (layout_layer(container, pallet.footprint, pallet.max_overhang),)

    layers = compute_num_layers(pallet.available_height, container.height)
    sequence = _layer_sequence(plans, layers)
    total = sum(plan.count for plan in sequence)
    if sequence:
        coverage = sum(plan.coverage for plan in sequence) / len(sequence)
    else:
        coverage = sum(plan.coverage for plan in plans) / len(plans)
    return PalletLayout(
        requested_pattern=support.requested,
        pattern=support.effective,
        layer_plans=plans,
        layers=layers,
        total=total,
        height=compute_stack_height(layers, container.height, pallet.base_height),
        coverage=coverage,
    )


def best_pallet_pattern(
    container: Dimensions3D,
    pallet: PalletConfig,
    patterns: Iterable[LayerPattern | str] | None = None,
) -> PalletLayout:
    """Evaluate the allowed patterns; most boxes wins, then coverage."""
    names = list(patterns) if patterns is not None else list(pallet.patterns)
    if not names:
        names = [LayerPattern.COLUMN]
    layouts = [stack(container, pallet, name) for name in names]
    return max(layouts, key=lambda layout: (layout.total, layout.coverage))
