from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Tuple

from .errors import InvalidGeometry
from .units import IN, format_float

EPS = 1e-6


class Axis(IntEnum):
    """Container axes. HEIGHT is the vertical axis once a box is stacked."""

    LENGTH = 0
    WIDTH = 1
    HEIGHT = 2


def _require_positive(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidGeometry(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(number) or number <= 0:
        raise InvalidGeometry(f"{name} must be positive, got {value!r}")
    return number


@dataclass(frozen=True)
class Dimensions3D:
    """Three positive extents along LENGTH, WIDTH and HEIGHT."""

    length: IN
    width: IN
    height: IN

    def __post_init__(self) -> None:
        object.__setattr__(self, "length", _require_positive("length", self.length))
        object.__setattr__(self, "width", _require_positive("width", self.width))
        object.__setattr__(self, "height", _require_positive("height", self.height))

    @classmethod
    def of(cls, values) -> "Dimensions3D":
        length, width, height = values
        return cls(length, width, height)

    def __getitem__(self, axis: Axis) -> float:
        return self.as_tuple()[Axis(axis)]

    def __str__(self) -> str:
        return " x ".join(format_float(value) for value in self.as_tuple())

    def as_tuple(self) -> Tuple[float, float, float]:
        return self.length, self.width, self.height

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    @property
    def min_extent(self) -> float:
        return min(self.as_tuple())

    @property
    def max_extent(self) -> float:
        return max(self.as_tuple())

    @property
    def aspect_ratio(self) -> float:
        """Largest ratio between any two extents."""
        return self.max_extent / self.min_extent

    def shrink(self, amount: float) -> "Dimensions3D":
        """Return dimensions reduced by ``amount`` on both faces of every axis."""
        try:
            return Dimensions3D(
                self.length - 2 * amount,
                self.width - 2 * amount,
                self.height - 2 * amount,
            )
        except InvalidGeometry as exc:
            raise InvalidGeometry(
                f"wall thickness {amount!r} leaves no internal space in {self}"
            ) from exc


class Rotation(str, Enum):
    """Axis-aligned rotation of a unit inside a container.

    The value names, per container axis, which unit extent lies along it:
    ``WHL`` puts the unit's width along the container length, its height
    along the container width and its length upright. Members are listed in
    the order the solver tries them.
    """

    LWH = "LWH"
    LHW = "LHW"
    WLH = "WLH"
    WHL = "WHL"
    HLW = "HLW"
    HWL = "HWL"

    @property
    def mapping(self) -> Tuple[Axis, Axis, Axis]:
        """Unit axis placed along each container axis."""
        return _ROTATION_MAPPINGS[self]

    def apply(self, unit: Dimensions3D) -> Dimensions3D:
        return Dimensions3D.of(unit[axis] for axis in self.mapping)


_ROTATION_MAPPINGS = {
    Rotation.LWH: (Axis.LENGTH, Axis.WIDTH, Axis.HEIGHT),
    Rotation.LHW: (Axis.LENGTH, Axis.HEIGHT, Axis.WIDTH),
    Rotation.WLH: (Axis.WIDTH, Axis.LENGTH, Axis.HEIGHT),
    Rotation.WHL: (Axis.WIDTH, Axis.HEIGHT, Axis.LENGTH),
    Rotation.HLW: (Axis.HEIGHT, Axis.LENGTH, Axis.WIDTH),
    Rotation.HWL: (Axis.HEIGHT, Axis.WIDTH, Axis.LENGTH),
}


@dataclass(frozen=True)
class CompressionAllowance:
    """Fraction by which a packed unit may be squeezed along each container axis."""

    length: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def __post_init__(self) -> None:
        for name in ("length", "width", "height"):
            value = float(getattr(self, name))
            if not 0.0 <= value < 1.0:
                raise InvalidGeometry(
                    f"compression along {name} must be in [0, 1), got {value!r}"
                )
            object.__setattr__(self, name, value)

    @property
    def volume_factor(self) -> float:
        """Share of a unit's volume left after squeezing on every axis."""
        return (1.0 - self.length) * (1.0 - self.width) * (1.0 - self.height)

    def apply(self, oriented: Dimensions3D) -> Dimensions3D:
        return Dimensions3D(
            oriented.length * (1.0 - self.length),
            oriented.width * (1.0 - self.width),
            oriented.height * (1.0 - self.height),
        )


NO_COMPRESSION = CompressionAllowance()


@dataclass(frozen=True)
class Footprint:
    """Pallet deck footprint."""

    length: IN
    width: IN

    def __post_init__(self) -> None:
        object.__setattr__(self, "length", _require_positive("pallet length", self.length))
        object.__setattr__(self, "width", _require_positive("pallet width", self.width))

    @property
    def area(self) -> float:
        return self.length * self.width


def fit_count(extent: float, size: float) -> int:
    """How many ``size`` pieces fit along ``extent`` (never negative)."""
    if size <= 0:
        return 0
    return max(int(math.floor(extent / size + EPS)), 0)
