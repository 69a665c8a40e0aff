from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .arrangement import Arrangement, arrange_product
from .geometry import Dimensions3D, Rotation
from .models import ContainerSpec, PackConfig, ProductUnit
from .search import CandidateSpace, DimensionRange
from .settings import DEFAULT_WEIGHTS, ArrangementWeights


@dataclass(frozen=True)
class AnalysisPolicy:
    squish_low: float = 0.8
    squish_high: float = 1.2
    min_box_utilization: float = 0.75
    search_bounds: DimensionRange = DimensionRange(12.0, 20.0, 0.5)


DEFAULT_ANALYSIS_POLICY = AnalysisPolicy()


@dataclass(frozen=True)
class ProductAnalysis:
    product_id: str
    dimensions: Dimensions3D
    theoretical: int
    actual: int
    squish_factor: float
    theoretical_utilization: float
    actual_utilization: float
    box_utilization: float
    rotation: Optional[Rotation]
    gross_weight: float
    notes: str = ""
    observed_box: Optional[Dimensions3D] = None

    @property
    def fits(self) -> bool:
        return self.rotation is not None


@dataclass(frozen=True)
class CatalogSummary:
    total: int
    avg_squish_factor: float
    avg_theoretical_utilization: float
    avg_actual_utilization: float
    avg_box_utilization: float
    problematic: int
    underutilized: int


@dataclass(frozen=True)
class CatalogAnalysis:
    products: List[ProductAnalysis]
    summary: CatalogSummary


def observed_utilization(product: ProductUnit) -> float:
    """Share of the recorded shipping box filled by the baseline quantity."""
    if product.observed_box is None or not product.baseline_quantity:
        return 0.0
    return product.volume * product.baseline_quantity / product.observed_box.volume


def analyze_product(
    product: ProductUnit,
    container: ContainerSpec,
    config: PackConfig,
    weights: ArrangementWeights = DEFAULT_WEIGHTS.arrangement,
) -> ProductAnalysis:
    result = arrange_product(product, container, config, weights)
    baseline = product.baseline_quantity or 0
    fitted = result if isinstance(result, Arrangement) else None

    if product.squish_factor is not None:
        squish = product.squish_factor
    elif baseline and fitted is not None:
        squish = baseline / fitted.count
    else:
        squish = 1.0

    if fitted is not None and baseline:
        actual_utilization = baseline / fitted.count * fitted.utilization
    else:
        actual_utilization = 0.0

    box_utilization = observed_utilization(product)

    return ProductAnalysis(
        product_id=product.product_id,
        dimensions=product.dimensions,
        theoretical=fitted.count if fitted is not None else 0,
        actual=baseline,
        squish_factor=squish,
        theoretical_utilization=fitted.utilization if fitted is not None else 0.0,
        actual_utilization=actual_utilization,
        box_utilization=box_utilization,
        rotation=fitted.rotation if fitted is not None else None,
        gross_weight=fitted.gross_weight if fitted is not None else 0.0,
        notes=product.notes,
        observed_box=product.observed_box,
    )


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def summarize(
    products: Sequence[ProductAnalysis],
    policy: AnalysisPolicy = DEFAULT_ANALYSIS_POLICY,
) -> CatalogSummary:
    return CatalogSummary(
        total=len(products),
        avg_squish_factor=_mean([p.squish_factor for p in products]),
        avg_theoretical_utilization=_mean([p.theoretical_utilization for p in products]),
        avg_actual_utilization=_mean([p.actual_utilization for p in products]),
        avg_box_utilization=_mean([p.box_utilization for p in products]),
        problematic=sum(
            1
            for p in products
            if p.squish_factor > policy.squish_high or p.squish_factor < policy.squish_low
        ),
        underutilized=sum(
            1 for p in products if p.box_utilization < policy.min_box_utilization
        ),
    )


def analyze_catalog(
    catalog: Sequence[ProductUnit],
    container: ContainerSpec,
    config: PackConfig,
    *,
    policy: AnalysisPolicy = DEFAULT_ANALYSIS_POLICY,
    weights: ArrangementWeights = DEFAULT_WEIGHTS.arrangement,
) -> CatalogAnalysis:
    """Compare each product's theoretical fit in ``container`` with its baseline."""
    products = [analyze_product(product, container, config, weights) for product in catalog]
    return CatalogAnalysis(products=products, summary=summarize(products, policy))


@dataclass(frozen=True)
class BoxSuggestion:
    container: ContainerSpec
    rotation: Rotation
    count: int
    utilization: float
    improvement: float

    @property
    def volume(self) -> float:
        return self.container.external_volume


def suggest_box(
    product: ProductUnit,
    config: PackConfig,
    bounds: DimensionRange = DEFAULT_ANALYSIS_POLICY.search_bounds,
    *,
    current_utilization: Optional[float] = None,
    weights: ArrangementWeights = DEFAULT_WEIGHTS.arrangement,
) -> Optional[BoxSuggestion]:
    """Find a box that holds the baseline quantity more tightly than today.

    Utilization is the packed volume of the baseline quantity (after the
    product's compression allowance) over the candidate's internal volume.
    The highest utilization wins; ties go to the smaller box. Returns None when the product has no baseline quantity or no candidate
    beats ``current_utilization`` (the observed box utilization by default).
    """
    quantity = product.baseline_quantity
    if not quantity:
        return None
    if current_utilization is None:
        current_utilization = observed_utilization(product)
    payload = product.volume * config.compression_for(product).volume_factor * quantity

    best: Optional[BoxSuggestion] = None
    best_key: Optional[Tuple] = None
    for container in CandidateSpace.for_config(bounds, config):
        if container.internal_volume + 1e-9 < payload:
            continue
        result = arrange_product(product, container, config, weights)
        if not isinstance(result, Arrangement) or result.count < quantity:
            continue
        utilization = payload / container.internal_volume
        if utilization <= current_utilization:
            continue
        key = (-utilization, container.external_volume, container.external.as_tuple())
        if best_key is None or key < best_key:
            best_key = key
            best = BoxSuggestion(
                container=container,
                rotation=result.rotation,
                count=result.count,
                utilization=utilization,
                improvement=utilization - current_utilization,
            )
    return best


@dataclass(frozen=True)
class OptimizationCandidate:
    product_id: str
    current_utilization: float
    suggestion: Optional[BoxSuggestion]


def products_needing_optimization(
    catalog: Sequence[ProductUnit],
    config: PackConfig,
    *,
    policy: AnalysisPolicy = DEFAULT_ANALYSIS_POLICY,
    weights: ArrangementWeights = DEFAULT_WEIGHTS.arrangement,
) -> List[OptimizationCandidate]:
    """Products whose observed box is underutilized, each with a better box if one exists."""
    flagged = []
    for product in catalog:
        current = observed_utilization(product)
        if current >= policy.min_box_utilization:
            continue
        flagged.append(
            OptimizationCandidate(
                product_id=product.product_id,
                current_utilization=current,
                suggestion=suggest_box(
                    product,
                    config,
                    policy.search_bounds,
                    current_utilization=current,
                    weights=weights,
                ),
            )
        )
    return flagged


@dataclass(frozen=True)
class SquishEfficiency:
    squished_utilization: float
    original_utilization: float
    volume_savings: float
    squish_factor: float

    @property
    def benefit(self) -> float:
        """Box share freed by packing the units compressed."""
        return self.original_utilization - self.squished_utilization


def squish_efficiency(
    product: ProductUnit, config: PackConfig
) -> Optional[SquishEfficiency]:
    """Compare the observed box filled with compressed and with uncompressed units."""
    if product.observed_box is None or not product.baseline_quantity:
        return None
    quantity = product.baseline_quantity
    box_volume = product.observed_box.volume
    squished_volume = product.volume * config.compression_for(product).volume_factor
    return SquishEfficiency(
        squished_utilization=squished_volume * quantity / box_volume,
        original_utilization=product.volume * quantity / box_volume,
        volume_savings=(product.volume - squished_volume) * quantity,
        squish_factor=product.squish_factor if product.squish_factor is not None else 1.0,
    )
