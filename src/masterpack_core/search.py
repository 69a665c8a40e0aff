"""Sweep candidate masterpack sizes and rank them against a whole catalog."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .arrangement import FitResult, NoFit, arrange_product
from .errors import InvalidGeometry
from .geometry import EPS, Dimensions3D
from .models import ContainerSpec, PackConfig, ProductUnit
from .settings import DEFAULT_WEIGHTS, ScoringWeights
from .stacking import InterlockFit, PalletLayout, best_pallet_pattern, check_interlock

logger = logging.getLogger(__name__)

MAX_ASPECT_RATIO = 2.0
TOP_N = 5


@dataclass(frozen=True)
class DimensionRange:
    min_dim: float = 12.0
    max_dim: float = 24.0
    step: float = 1.0

    def __post_init__(self) -> None:
        if self.step <= 0:
            raise InvalidGeometry(f"step must be positive, got {self.step!r}")
        if self.min_dim <= 0:
            raise InvalidGeometry(f"min_dim must be positive, got {self.min_dim!r}")

    def values(self) -> np.ndarray:
        """Inclusive axis values from ``min_dim`` to ``max_dim``."""
        if self.max_dim < self.min_dim:
            return np.empty(0)
        steps = int(math.floor((self.max_dim - self.min_dim) / self.step + EPS))
        return np.linspace(self.min_dim, self.min_dim + steps * self.step, steps + 1)


class CandidateSpace:
    """Lazy, restartable sequence of candidate containers.

    Every iteration walks the same triples in the same order, skipping those
    whose longest side exceeds ``max_aspect_ratio`` times the shortest.
    """

    def __init__(
        self,
        bounds: DimensionRange,
        *,
        wall_thickness: float = 0.0,
        tare_weight: float = 0.0,
        max_aspect_ratio: float = MAX_ASPECT_RATIO,
    ) -> None:
        self.bounds = bounds
        self.wall_thickness = wall_thickness
        self.tare_weight = tare_weight
        self.max_aspect_ratio = max_aspect_ratio
        self._axis = tuple(round(float(value), 6) for value in bounds.values())
        if self._axis and self._axis[0] - 2 * wall_thickness <= 0:
            raise InvalidGeometry(
                f"wall thickness {wall_thickness!r} leaves no internal space "
                f"in a {self._axis[0]!r} candidate"
            )

    @classmethod
    def for_config(cls, bounds: DimensionRange, config: PackConfig) -> "CandidateSpace":
        return cls(
            bounds,
            wall_thickness=config.wall_thickness,
            tare_weight=config.tare_weight,
        )

    def _triples(self) -> Iterator[Tuple[float, float, float]]:
        for length in self._axis:
            for width in self._axis:
                for height in self._axis:
                    yield length, width, height

    def is_plausible(self, triple: Tuple[float, float, float]) -> bool:
        return max(triple) / min(triple) <= self.max_aspect_ratio + EPS

    def __iter__(self) -> Iterator[ContainerSpec]:
        for triple in self._triples():
            if self.is_plausible(triple):
                yield ContainerSpec(
                    Dimensions3D.of(triple), self.wall_thickness, self.tare_weight
                )

    def count(self) -> Tuple[int, int]:
        """Return (kept, pruned) triple counts."""
        kept = sum(1 for triple in self._triples() if self.is_plausible(triple))
        return kept, len(self._axis) ** 3 - kept


@dataclass(frozen=True)
class ProductFit:
    product_id: str
    result: FitResult
    baseline_ratio: float


@dataclass(frozen=True)
class CandidateScore:
    container: ContainerSpec
    all_fit: bool
    avg_utilization: float
    avg_baseline_ratio: float
    interlock: InterlockFit
    rank: float
    fits: Tuple[ProductFit, ...] = ()

    @property
    def volume(self) -> float:
        return self.container.external_volume

    @property
    def failures(self) -> Tuple[str, ...]:
        return tuple(fit.product_id for fit in self.fits if not fit.result.fits)

    def sort_key(self) -> tuple:
        return (-self.rank, self.volume, self.container.external.as_tuple())


@dataclass(frozen=True)
class SearchResult:
    best: Optional[CandidateScore]
    top: Tuple[CandidateScore, ...]
    tested: int
    valid: int
    best_layout: Optional[PalletLayout] = None

    @property
    def found(self) -> bool:
        return self.best is not None


def baseline_ratio(product: ProductUnit, result: FitResult) -> float:
    if not product.baseline_quantity:
        return 1.0
    return result.count / product.baseline_quantity


def evaluate_candidate(
    container: ContainerSpec,
    catalog: Sequence[ProductUnit],
    config: PackConfig,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> CandidateScore:
    if not catalog:
        raise ValueError("catalog must contain at least one product")
    interlock = check_interlock(container.external, config.pallet.footprint)
    fits = []
    for product in catalog:
        result = arrange_product(product, container, config, weights.arrangement)
        fits.append(ProductFit(product.product_id, result, baseline_ratio(product, result)))
    all_fit = all(fit.result.fits for fit in fits)
    avg_utilization = sum(fit.result.utilization for fit in fits) / len(fits)
    avg_baseline = sum(fit.baseline_ratio for fit in fits) / len(fits)

    cw = weights.candidate
    if all_fit:
        rank = (
            cw.utilization * avg_utilization
            - cw.volume * container.external_volume
            + cw.baseline * avg_baseline
        )
        if interlock.feasible:
            rank += cw.interlock_bonus + cw.coverage * interlock.avg_coverage
    else:
        rank = cw.rejected_rank
    return CandidateScore(
        container=container,
        all_fit=all_fit,
        avg_utilization=avg_utilization,
        avg_baseline_ratio=avg_baseline,
        interlock=interlock,
        rank=rank,
        fits=tuple(fits),
    )


def search(
    catalog: Sequence[ProductUnit],
    config: PackConfig,
    bounds: DimensionRange | CandidateSpace = DimensionRange(),
    *,
    top_n: int = TOP_N,
    weights: Optional[ScoringWeights] = None,
    workers: int = 1,
) -> SearchResult:
    """Find the container size that best serves every product in ``catalog``.

    Candidates where any product does not fit are dropped. When none remain
    the result has ``best`` set to None and an empty ``top``.

    ``workers`` > 1 evaluates candidates on a thread pool. Evaluation is pure
    Python and holds the GIL, so this only overlaps work on free-threaded
    interpreters; results are identical for any worker count.
    """
    if not catalog:
        raise ValueError("catalog must contain at least one product")
    if weights is None:
        weights = DEFAULT_WEIGHTS
    if isinstance(bounds, CandidateSpace):
        space = bounds
    else:
        space = CandidateSpace.for_config(bounds, config)

    kept, pruned = space.count()
    logger.info(
        "Testing %d candidates (%d pruned) for %d products", kept, pruned, len(catalog)
    )

    def evaluate(container: ContainerSpec) -> CandidateScore:
        return evaluate_candidate(container, catalog, config, weights)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            scores: List[CandidateScore] = list(ex.map(evaluate, space))
    else:
        scores = [evaluate(container) for container in space]

    valid = []
    for score in scores:
        if score.all_fit:
            valid.append(score)
        else:
            logger.debug(
                "Rejected %s: %s do not fit",
                score.container.external,
                ", ".join(score.failures),
            )
    valid.sort(key=CandidateScore.sort_key)
    top = tuple(valid[:top_n])
    logger.info("Tested %d candidates, %d fit every product", len(scores), len(valid))
    best = top[0] if top else None
    return SearchResult(
        best=best,
        top=top,
        tested=len(scores),
        valid=len(valid),
        best_layout=(
            best_pallet_pattern(best.container.external, config.pallet)
            if best is not None
            else None
        ),
    )


def rejection_reasons(score: CandidateScore) -> Tuple[Tuple[str, NoFit], ...]:
    """NoFit results behind a rejected candidate."""
    return tuple(
        (fit.product_id, fit.result) for fit in score.fits if isinstance(fit.result, NoFit)
    )
