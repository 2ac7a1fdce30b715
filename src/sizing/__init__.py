"""Dependency-size resolution: probing, manifests, traversal and aggregation."""

from .models import (
    LookupStatus,
    Manifest,
    PackageIdentity,
    ResolutionResult,
    SizeLookup,
    TraversalLimits,
    TraversalReport,
    normalize_version_spec,
)
from .precision import round_to_precision
from .manifest import extract_manifest
from .resolver import SizeResolver
from .service import PackageCostService

__all__ = [
    "LookupStatus",
    "Manifest",
    "PackageIdentity",
    "ResolutionResult",
    "SizeLookup",
    "TraversalLimits",
    "TraversalReport",
    "normalize_version_spec",
    "round_to_precision",
    "extract_manifest",
    "SizeResolver",
    "PackageCostService",
]
