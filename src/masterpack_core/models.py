from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import InvalidGeometry
from .geometry import NO_COMPRESSION, CompressionAllowance, Dimensions3D, Footprint
from .units import IN, LB

DEFAULT_PREFERRED_MULTIPLES = (48, 42, 36, 30, 24, 20, 18)


def _require_non_negative(name: str, value: float) -> float:
    if value < 0:
        raise InvalidGeometry(f"{name} cannot be negative, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class ProductUnit:
    """A catalog product as packed inside a masterpack."""

    product_id: str
    dimensions: Dimensions3D
    unit_weight: LB = 0.0
    baseline_quantity: Optional[int] = None
    observed_box: Optional[Dimensions3D] = None
    notes: str = ""
    compression: Optional[CompressionAllowance] = None
    squish_factor: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "unit_weight", _require_non_negative("unit_weight", self.unit_weight)
        )
        if self.baseline_quantity is not None and self.baseline_quantity < 0:
            raise ValueError(
                f"baseline_quantity cannot be negative, got {self.baseline_quantity!r}"
            )

    @property
    def volume(self) -> float:
        return self.dimensions.volume


@dataclass(frozen=True)
class ContainerSpec:
    """A masterpack box; internal dimensions are derived from the walls."""

    external: Dimensions3D
    wall_thickness: IN = 0.0
    tare_weight: LB = 0.0
    internal: Dimensions3D = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        wall = _require_non_negative("wall_thickness", self.wall_thickness)
        object.__setattr__(self, "wall_thickness", wall)
        object.__setattr__(
            self, "tare_weight", _require_non_negative("tare_weight", self.tare_weight)
        )
        object.__setattr__(self, "internal", self.external.shrink(wall))

    @property
    def external_volume(self) -> float:
        return self.external.volume

    @property
    def internal_volume(self) -> float:
        return self.internal.volume


@dataclass(frozen=True)
class PalletConfig:
    """Pallet deck, target stacking height and layer pattern choices."""

    footprint: Footprint
    base_height: IN
    target_height: IN
    max_overhang: IN = 0.0
    patterns: Tuple[str, ...] = ("column",)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "base_height", _require_non_negative("base_height", self.base_height)
        )
        object.__setattr__(
            self, "max_overhang", _require_non_negative("max_overhang", self.max_overhang)
        )
        if self.target_height <= 0:
            raise InvalidGeometry(
                f"target_height must be positive, got {self.target_height!r}"
            )
        object.__setattr__(self, "target_height", float(self.target_height))
        object.__setattr__(self, "patterns", tuple(self.patterns) or ("column",))

    @property
    def available_height(self) -> float:
        return max(self.target_height - self.base_height, 0.0)


@dataclass(frozen=True)
class PackConfig:
    """Everything a solve needs besides the catalog itself."""

    pallet: PalletConfig
    wall_thickness: IN = 0.0
    tare_weight: LB = 0.0
    preferred_multiples: Tuple[int, ...] = DEFAULT_PREFERRED_MULTIPLES
    compression: CompressionAllowance = NO_COMPRESSION
    max_gross_weight: LB = 40.0
    low_density_count: int = 20

    def __post_init__(self) -> None:
        multiples = tuple(int(value) for value in self.preferred_multiples)
        if any(value <= 0 for value in multiples):
            raise ValueError(f"preferred multiples must be positive, got {multiples!r}")
        object.__setattr__(self, "preferred_multiples", multiples)
        _require_non_negative("wall_thickness", self.wall_thickness)
        _require_non_negative("tare_weight", self.tare_weight)

    def container(self, external: Dimensions3D) -> ContainerSpec:
        return ContainerSpec(external, self.wall_thickness, self.tare_weight)

    def compression_for(self, product: ProductUnit) -> CompressionAllowance:
        if product.compression is not None:
            return product.compression
        return self.compression
