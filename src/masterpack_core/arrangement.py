"""Best rotation and grid of identical units inside one masterpack."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple, Union

from .geometry import (
    NO_COMPRESSION,
    Axis,
    CompressionAllowance,
    Dimensions3D,
    Rotation,
    fit_count,
)
from .models import ContainerSpec, PackConfig, ProductUnit
from .settings import DEFAULT_WEIGHTS, ArrangementWeights


@dataclass(frozen=True)
class Arrangement:
    """A fitting rotation with its grid counts and derived metrics."""

    rotation: Rotation
    nx: int
    ny: int
    nz: int
    utilization: float
    score: float
    oriented: Dimensions3D
    packed: Dimensions3D
    unit_weight: float = 0.0
    product_weight: float = 0.0
    gross_weight: float = 0.0
    low_density: bool = False
    overweight: bool = False

    fits = True

    @property
    def count(self) -> int:
        return self.nx * self.ny * self.nz

    @property
    def counts(self) -> Tuple[int, int, int]:
        return self.nx, self.ny, self.nz

    def with_weight(
        self,
        unit_weight: float,
        tare_weight: float,
        *,
        max_gross_weight: float,
        low_density_count: int,
    ) -> "Arrangement":
        product_weight = self.count * unit_weight
        gross_weight = product_weight + tare_weight
        return replace(
            self,
            unit_weight=unit_weight,
            product_weight=product_weight,
            gross_weight=gross_weight,
            low_density=self.count < low_density_count,
            overweight=gross_weight > max_gross_weight,
        )


@dataclass(frozen=True)
class NoFit:
    """No rotation places even one unit in the container."""

    failing_axes: Tuple[Axis, ...]
    reason: str

    fits = False
    count = 0
    utilization = 0.0


FitResult = Union[Arrangement, NoFit]


def multiple_credit(count: int, preferred_multiples: Sequence[int]) -> float:
    """Return 1.0 for an exact multiple, less the further ``count`` is from one."""
    best = 0.0
    for multiple in preferred_multiples:
        if multiple <= 0:
            continue
        if count % multiple == 0:
            return 1.0
        lower = (count // multiple) * multiple
        nearest = [lower + multiple]
        if lower > 0:
            nearest.append(lower)
        distance = min(abs(count - value) for value in nearest)
        best = max(best, 1.0 - distance / multiple)
    return best


def score_grid(
    counts: Tuple[int, int, int],
    utilization: float,
    preferred_multiples: Sequence[int],
    weights: ArrangementWeights,
) -> float:
    nx, ny, nz = counts
    count = nx * ny * nz
    return (
        weights.multiple_bonus * multiple_credit(count, preferred_multiples)
        + weights.utilization * utilization
        - weights.depth_penalty * nx
    )


def find_failing_axes(unit: Dimensions3D, internal: Dimensions3D) -> Tuple[Axis, ...]:
    smallest = unit.min_extent
    failing = tuple(axis for axis in Axis if smallest > internal[axis])
    return failing or tuple(Axis)


def _try_rotation(
    rotation: Rotation,
    unit: Dimensions3D,
    internal: Dimensions3D,
    compression: CompressionAllowance,
    preferred_multiples: Sequence[int],
    weights: ArrangementWeights,
) -> Optional[Arrangement]:
    oriented = rotation.apply(unit)
    packed = compression.apply(oriented)
    counts = tuple(fit_count(internal[axis], packed[axis]) for axis in Axis)
    if min(counts) < 1:
        return None
    nx, ny, nz = counts
    used = nx * ny * nz * packed.volume
    utilization = min(used / internal.volume, 1.0)
    return Arrangement(
        rotation=rotation,
        nx=nx,
        ny=ny,
        nz=nz,
        utilization=utilization,
        score=score_grid(counts, utilization, preferred_multiples, weights),
        oriented=oriented,
        packed=packed,
    )


def candidate_arrangements(
    unit: Dimensions3D,
    internal: Dimensions3D,
    compression: CompressionAllowance = NO_COMPRESSION,
    preferred_multiples: Sequence[int] = (),
    weights: ArrangementWeights = DEFAULT_WEIGHTS.arrangement,
) -> List[Arrangement]:
    """Every fitting rotation, in rotation enumeration order."""
    arrangements = []
    for rotation in Rotation:
        arrangement = _try_rotation(
            rotation, unit, internal, compression, preferred_multiples, weights
        )
        if arrangement is not None:
            arrangements.append(arrangement)
    return arrangements


def solve(
    unit: Dimensions3D,
    internal: Dimensions3D,
    compression: CompressionAllowance = NO_COMPRESSION,
    preferred_multiples: Sequence[int] = (),
    weights: ArrangementWeights = DEFAULT_WEIGHTS.arrangement,
) -> FitResult:
    """Pick the highest scoring rotation of ``unit`` inside ``internal``.

    Both dimensions are validated on construction, so a solve never starts
    from a non-positive extent. Equal scores keep the earlier rotation in
    :class:`Rotation` order.
    """
    best: Optional[Arrangement] = None
    for arrangement in candidate_arrangements(
        unit, internal, compression, preferred_multiples, weights
    ):
        if best is None or arrangement.score > best.score:
            best = arrangement
    if best is None:
        failing = find_failing_axes(unit, internal)
        if len(failing) == len(Axis) and unit.min_extent <= internal.min_extent:
            reason = "no rotation fits all three axes at once"
        else:
            labels = ", ".join(axis.name.lower() for axis in failing)
            reason = f"unit too large for container {labels}"
        return NoFit(failing_axes=failing, reason=reason)
    return best


def arrange_product(
    product: ProductUnit,
    container: ContainerSpec,
    config: PackConfig,
    weights: ArrangementWeights = DEFAULT_WEIGHTS.arrangement,
) -> FitResult:
    """Solve one catalog product and attach its case weight flags."""
    result = solve(
        product.dimensions,
        container.internal,
        config.compression_for(product),
        config.preferred_multiples,
        weights,
    )
    if isinstance(result, NoFit):
        return result
    return result.with_weight(
        product.unit_weight,
        container.tare_weight,
        max_gross_weight=config.max_gross_weight,
        low_density_count=config.low_density_count,
    )
