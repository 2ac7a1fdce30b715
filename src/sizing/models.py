"""Data models for package size resolution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from constants import Constants


class LookupStatus(Enum):
    """Outcome of one size lookup."""
    FOUND = "found"
    ABSENT = "absent"  # confirmed: nothing to measure
    FAILED = "failed"


def normalize_version_spec(spec: Optional[str]) -> str:
    """Strip whitespace and a single leading ``^`` or ``~`` from a version spec."""
    text = (spec or "").strip()
    if text[:1] in ("^", "~"):
        text = text[1:].strip()
    return text


@dataclass(frozen=True)
class PackageIdentity:
    """A ``name@versionSpec`` pair; ``key`` is the dedup key of a resolution unit."""
    name: str
    version_spec: str

    @property
    def version(self) -> str:
        """Version spec with the leading range operator stripped."""
        return normalize_version_spec(self.version_spec)

    @property
    def key(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class Manifest:
    """Direct dependencies declared by a package manifest."""
    dependencies: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SizeLookup:
    """Explicit result of sizing one unit, separating 'zero' from 'failed'."""
    unit: str
    status: LookupStatus
    megabytes: float = 0.0
    reason: Optional[str] = None
    error: Optional[Exception] = field(default=None, compare=False, repr=False)

    @classmethod
    def found(cls, unit: str, megabytes: float) -> "SizeLookup":
        return cls(unit=unit, status=LookupStatus.FOUND, megabytes=megabytes)

    @classmethod
    def absent(cls, unit: str, reason: str) -> "SizeLookup":
        return cls(unit=unit, status=LookupStatus.ABSENT, reason=reason)

    @classmethod
    def failed(cls, unit: str, error: Exception) -> "SizeLookup":
        return cls(unit=unit, status=LookupStatus.FAILED, reason=str(error), error=error)


@dataclass(frozen=True)
class TraversalLimits:
    """Ceilings bounding one traversal."""
    max_depth: int = Constants.MAX_DEPTH
    max_units: int = Constants.MAX_UNITS

    @classmethod
    def from_constants(cls) -> "TraversalLimits":
        return cls(max_depth=Constants.MAX_DEPTH, max_units=Constants.MAX_UNITS)


@dataclass
class TraversalReport:
    """Every lookup performed while answering one query.

    ``visited`` holds resolution-unit keys. A key is added before the unit is
    sized and is never revisited within the same report.
    """
    visited: Set[str] = field(default_factory=set)
    lookups: List[SizeLookup] = field(default_factory=list)
    truncated: bool = False

    def record(self, lookup: SizeLookup) -> None:
        self.lookups.append(lookup)

    @property
    def failures(self) -> List[SizeLookup]:
        return [lk for lk in self.lookups if lk.status == LookupStatus.FAILED]


@dataclass(frozen=True)
class ResolutionResult:
    """Rounded sizes for one top-level package; total >= standalone."""
    standalone_cost: float
    total_cost: float
