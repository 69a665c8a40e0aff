"""Masterpack sizing: unit arrangement, pallet stacking and container search."""

from .analysis import (
    BoxSuggestion,
    CatalogAnalysis,
    analyze_catalog,
    products_needing_optimization,
    squish_efficiency,
    suggest_box,
)
from .arrangement import Arrangement, NoFit, arrange_product, solve
from .errors import InvalidConfiguration, InvalidGeometry, MasterpackError
from .geometry import Axis, CompressionAllowance, Dimensions3D, Footprint, Rotation
from .models import ContainerSpec, PackConfig, PalletConfig, ProductUnit
from .search import CandidateScore, CandidateSpace, DimensionRange, SearchResult, search
from .settings import ScoringWeights, load_config, load_weights
from .stacking import (
    LayerPattern,
    LayerPlan,
    PalletLayout,
    best_pallet_pattern,
    check_interlock,
    layout_layer,
    pattern_support,
    stack,
)

__all__ = [
    "Arrangement",
    "Axis",
    "BoxSuggestion",
    "CandidateScore",
    "CandidateSpace",
    "CatalogAnalysis",
    "CompressionAllowance",
    "ContainerSpec",
    "Dimensions3D",
    "DimensionRange",
    "Footprint",
    "InvalidConfiguration",
    "InvalidGeometry",
    "LayerPattern",
    "LayerPlan",
    "MasterpackError",
    "NoFit",
    "PackConfig",
    "PalletConfig",
    "PalletLayout",
    "ProductUnit",
    "Rotation",
    "ScoringWeights",
    "SearchResult",
    "analyze_catalog",
    "arrange_product",
    "best_pallet_pattern",
    "check_interlock",
    "layout_layer",
    "load_config",
    "load_weights",
    "pattern_support",
    "products_needing_optimization",
    "search",
    "solve",
    "squish_efficiency",
    "stack",
    "suggest_box",
]
