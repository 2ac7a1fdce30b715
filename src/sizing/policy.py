"""Aggregation policies turning a traversal report into a size.

This is the single place deciding what failed or skipped lookups mean for a
total. ``best_effort`` counts them as zero and keeps going; ``strict``
refuses to report an under-counted figure.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable

from constants import FailurePolicy
from errors import ConfigurationError, CostError, TraversalLimitExceeded
from sizing.models import LookupStatus, SizeLookup, TraversalReport

logger = logging.getLogger(__name__)

AggregationPolicy = Callable[[Iterable[SizeLookup], bool], float]


def _found_sum(lookups: Iterable[SizeLookup]) -> float:
    return sum(lk.megabytes for lk in lookups if lk.status == LookupStatus.FOUND)


def best_effort(lookups: Iterable[SizeLookup], truncated: bool = False) -> float:
    """Sum FOUND sizes; ABSENT and FAILED lookups contribute 0."""
    items = list(lookups)
    for lk in items:
        if lk.status == LookupStatus.FAILED:
            logger.warning("Counting %s as 0 MB: %s", lk.unit, lk.reason)
    if truncated:
        logger.warning("Traversal ceiling reached; total is a lower bound")
    return _found_sum(items)


def strict(lookups: Iterable[SizeLookup], truncated: bool = False) -> float:
    """Sum FOUND sizes, raising on the first FAILED lookup or on truncation."""
    items = list(lookups)
    for lk in items:
        if lk.status == LookupStatus.FAILED:
            if isinstance(lk.error, CostError):
                raise lk.error
            raise CostError(f"Lookup for {lk.unit} failed: {lk.reason}")
    if truncated:
        raise TraversalLimitExceeded("Dependency traversal exceeded configured ceilings")
    return _found_sum(items)


POLICIES: Dict[str, AggregationPolicy] = {
    FailurePolicy.BEST_EFFORT.value: best_effort,
    FailurePolicy.STRICT.value: strict,
}


def get_policy(name: str) -> AggregationPolicy:
    """Look up an aggregation policy by its config name."""
    try:
        return POLICIES[name]
    except KeyError as exc:
        raise ConfigurationError(
            f"Unknown failure policy '{name}'; expected one of {sorted(POLICIES)}"
        ) from exc


def aggregate(report: TraversalReport, policy: AggregationPolicy = best_effort) -> float:
    """Apply ``policy`` to every lookup recorded in ``report``."""
    return policy(report.lookups, report.truncated)
