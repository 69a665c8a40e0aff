from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import InvalidConfiguration, InvalidGeometry
from .geometry import CompressionAllowance, Dimensions3D, Footprint
from .models import DEFAULT_PREFERRED_MULTIPLES, PackConfig, PalletConfig, ProductUnit
from .stacking import LayerPattern
from .units import parse_dimensions, parse_float

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "MASTERPACK_SETTINGS"


@dataclass(frozen=True)
class ArrangementWeights:
    """Weights of the per-rotation score used by the arrangement solver."""

    multiple_bonus: float = 20.0
    utilization: float = 500.0
    depth_penalty: float = 0.1


@dataclass(frozen=True)
class CandidateWeights:
    """Weights of the container candidate rank used by the dimension search."""

    utilization: float = 500.0
    volume: float = 0.1
    baseline: float = 300.0
    interlock_bonus: float = 200.0
    coverage: float = 300.0
    rejected_rank: float = -1e9


@dataclass(frozen=True)
class ScoringWeights:
    arrangement: ArrangementWeights = field(default_factory=ArrangementWeights)
    candidate: CandidateWeights = field(default_factory=CandidateWeights)


DEFAULT_WEIGHTS = ScoringWeights()


def default_settings_path() -> str:
    env_path = os.getenv(SETTINGS_ENV_VAR)
    if env_path:
        return os.path.abspath(os.path.expanduser(env_path))
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "settings.yaml")


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise InvalidConfiguration(f"Invalid YAML in {path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise InvalidConfiguration(f"{path} must contain a mapping at the top level")
    return loaded


def _number(section: str, key: str, value: Any) -> float:
    try:
        return parse_float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"{section}.{key}: expected a number, got {value!r}") from exc


def _override(section: str, base, values: Optional[Mapping[str, Any]]):
    if not values:
        return base
    if not isinstance(values, Mapping):
        raise InvalidConfiguration(f"{section} must be a mapping, got {values!r}")
    known = {f.name for f in fields(base)}
    updates = {}
    for key, value in values.items():
        if key not in known:
            logger.warning("Ignoring unknown setting %s.%s", section, key)
            continue
        updates[key] = _number(section, key, value)
    return replace(base, **updates)


def weights_from_mapping(data: Mapping[str, Any]) -> ScoringWeights:
    for key in data:
        if key not in ("arrangement", "candidate"):
            logger.warning("Ignoring unknown settings section %s", key)
    return ScoringWeights(
        arrangement=_override(
            "arrangement", DEFAULT_WEIGHTS.arrangement, data.get("arrangement")
        ),
        candidate=_override("candidate", DEFAULT_WEIGHTS.candidate, data.get("candidate")),
    )


@lru_cache(maxsize=None)
def load_weights(path: Optional[str] = None) -> ScoringWeights:
    """Load scoring weights from a YAML file, falling back to the defaults."""

    settings_path = path or default_settings_path()
    if not os.path.exists(settings_path):
        return DEFAULT_WEIGHTS
    weights = weights_from_mapping(_read_yaml(settings_path))
    logger.debug("Loaded scoring weights from %s", settings_path)
    return weights


def _dims(section: str, value: Any) -> Dimensions3D:
    try:
        if isinstance(value, Mapping):
            return Dimensions3D(
                parse_float(value["length"]),
                parse_float(value["width"]),
                parse_float(value["height"]),
            )
        if isinstance(value, str):
            return Dimensions3D.of(parse_dimensions(value))
        return Dimensions3D.of(parse_float(item) for item in value)
    except InvalidGeometry:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"{section}: cannot read dimensions from {value!r}") from exc


def _compression(section: str, value: Any) -> CompressionAllowance:
    if value is None:
        return CompressionAllowance()
    if not isinstance(value, Mapping):
        raise InvalidConfiguration(f"{section} must be a mapping, got {value!r}")
    return CompressionAllowance(
        length=_number(section, "length", value.get("length", 0.0)),
        width=_number(section, "width", value.get("width", 0.0)),
        height=_number(section, "height", value.get("height", 0.0)),
    )


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidConfiguration(f"{name} must be a mapping, got {value!r}")
    return value


def _list(section: str, value: Any) -> list:
    if isinstance(value, (str, int, float)):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise InvalidConfiguration(f"{section} must be a list, got {value!r}")
    return list(value)


def _patterns(value: Any) -> tuple:
    patterns = []
    for name in _list("solver.patterns", value):
        try:
            patterns.append(LayerPattern(str(name)).value)
        except ValueError as exc:
            known = sorted(pattern.value for pattern in LayerPattern)
            raise InvalidConfiguration(
                f"solver.patterns: unknown layer pattern {name!r}, expected one of {known}"
            ) from exc
    return tuple(patterns)


def config_from_mapping(data: Mapping[str, Any]) -> PackConfig:
    """Build a PackConfig from a parsed configuration record."""

    pallet = data.get("pallet")
    if not isinstance(pallet, Mapping):
        raise InvalidConfiguration("configuration requires a 'pallet' mapping")
    masterpack = _section(data, "masterpack")
    solver = _section(data, "solver")
    try:
        pallet_config = PalletConfig(
            footprint=Footprint(
                _number("pallet", "length", pallet["length"]),
                _number("pallet", "width", pallet["width"]),
            ),
            base_height=_number("pallet", "height", pallet.get("height", 0.0)),
            target_height=_number(
                "pallet", "target_height", pallet["target_height"]
            ),
            max_overhang=_number("solver", "max_overhang", solver.get("max_overhang", 0.0)),
            patterns=_patterns(solver.get("patterns", ("column",))),
        )
    except KeyError as exc:
        raise InvalidConfiguration(f"pallet: missing key {exc.args[0]!r}") from exc
    multiples = _list(
        "solver.preferred_multiples",
        solver.get("preferred_multiples", DEFAULT_PREFERRED_MULTIPLES),
    )
    return PackConfig(
        pallet=pallet_config,
        wall_thickness=_number(
            "masterpack", "wall_thickness", masterpack.get("wall_thickness", 0.0)
        ),
        tare_weight=_number("masterpack", "tare_weight", masterpack.get("tare_weight", 0.0)),
        preferred_multiples=tuple(
            int(_number("solver", "preferred_multiples", value)) for value in multiples
        ),
        compression=_compression("solver.compression", solver.get("compression")),
        max_gross_weight=_number(
            "solver", "max_gross_weight", solver.get("max_gross_weight", 40.0)
        ),
        low_density_count=int(
            _number("solver", "low_density_count", solver.get("low_density_count", 20))
        ),
    )


def load_config(path: str) -> PackConfig:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found: {path}")
    return config_from_mapping(_read_yaml(path))


def product_from_mapping(data: Mapping[str, Any]) -> ProductUnit:
    """Build a ProductUnit from one catalog record."""

    if not isinstance(data, Mapping):
        raise InvalidConfiguration(f"product record must be a mapping, got {data!r}")
    try:
        product_id = str(data["id"])
        dimensions = _dims(product_id, data["dimensions"])
    except KeyError as exc:
        raise InvalidConfiguration(
            f"product record {data!r} missing key {exc.args[0]!r}"
        ) from exc
    baseline = data.get("baseline_quantity")
    if baseline not in (None, ""):
        baseline = int(_number(product_id, "baseline_quantity", baseline))
    else:
        baseline = None
    squish = data.get("squish_factor")
    if squish not in (None, ""):
        squish = _number(product_id, "squish_factor", squish)
    else:
        squish = None
    observed = data.get("observed_box")
    compression = data.get("compression")
    return ProductUnit(
        product_id=product_id,
        dimensions=dimensions,
        unit_weight=_number(product_id, "unit_weight", data.get("unit_weight", 0.0)),
        baseline_quantity=baseline,
        observed_box=None if observed is None else _dims(product_id, observed),
        notes=str(data.get("notes") or ""),
        compression=None if compression is None else _compression(product_id, compression),
        squish_factor=squish,
    )


def load_catalog(path: str) -> List[ProductUnit]:
    """Read a YAML catalog: a list of product records, or one under ``products``."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Catalog file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidConfiguration(f"Invalid YAML in {path}: {exc}") from exc
    if isinstance(loaded, Mapping):
        loaded = loaded.get("products")
    if not isinstance(loaded, list):
        raise InvalidConfiguration(f"{path} must contain a list of products")
    return [product_from_mapping(record) for record in loaded]
