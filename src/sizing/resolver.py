"""Dependency-size resolution engine.

A top-level package is sized from its stored artifact; each declared
dependency is sized from the registry tarball it resolves to and expanded
through its own stored manifest (``<name>-<version>`` in the artifact store).

The walk uses an explicit stack. The visited set is passed in by the caller
and threaded through the whole walk, so one top-level query never sizes the
same ``name@version`` twice and concurrent queries never share state. Each
unit moves Unvisited -> InProgress (key added) -> Resolved (lookup recorded);
a second encounter is a no-op.
"""
from __future__ import annotations

import logging
from typing import Optional, Set, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer
from errors import CostError, NotFound, StoreError
from sizing.manifest import extract_manifest
from sizing.models import (
    LookupStatus,
    Manifest,
    PackageIdentity,
    ResolutionResult,
    SizeLookup,
    TraversalLimits,
    TraversalReport,
)
from sizing.policy import AggregationPolicy, aggregate, best_effort
from sizing.precision import bytes_to_megabytes, round_to_precision
from sizing.probe import probe
from stores.base import ArtifactStore, MetadataStore, PackageItem

logger = logging.getLogger(__name__)


class SizeResolver:
    """Computes standalone and transitive sizes for stored packages."""

    def __init__(
        self,
        metadata_store: MetadataStore,
        artifact_store: ArtifactStore,
        registry,
        limits: Optional[TraversalLimits] = None,
        policy: AggregationPolicy = best_effort,
    ):
        """Initialize the resolver.

        Args:
            metadata_store: Lookup of package records by id.
            artifact_store: Stored zip artifacts.
            registry: Client exposing ``get_version_tarball`` and ``open_tarball``.
            limits: Traversal ceilings; defaults to the configured constants.
            policy: Aggregation policy applied to recorded lookups.
        """
        self._metadata = metadata_store
        self._artifacts = artifact_store
        self._registry = registry
        self._limits = limits or TraversalLimits.from_constants()
        self._policy = policy

    def lookup_package(self, package_id: str) -> PackageItem:
        """Fetch the metadata record for ``package_id``.

        Raises:
            NotFound: If the metadata store has no such record.
        """
        item = self._metadata.lookup_by_id(package_id)
        if item is None:
            raise NotFound(f"Package {package_id} does not exist.")
        return item

    # -- standalone -------------------------------------------------------

    def standalone_lookup(self, item: PackageItem) -> SizeLookup:
        """Size the stored artifact from its metadata (no download, no decompression)."""
        unit = PackageIdentity(item.name, item.version).key
        try:
            size_bytes = self._artifacts.head_size(item.artifact_key)
        except StoreError as exc:
            return SizeLookup.failed(unit, exc)
        if not size_bytes:
            return SizeLookup.absent(unit, f"no stored object for {item.artifact_key}")
        return SizeLookup.found(unit, round_to_precision(bytes_to_megabytes(size_bytes)))

    def resolve_standalone(self, item: PackageItem) -> float:
        """Standalone size in MB; unknown sizes count as 0 under best effort."""
        return round_to_precision(self._policy([self.standalone_lookup(item)], False))

    # -- transitive -------------------------------------------------------

    def _unit_size(self, ident: PackageIdentity) -> SizeLookup:
        """Size one resolution unit from the registry tarball it resolves to."""
        try:
            tarball = self._registry.get_version_tarball(ident.name, ident.version_spec)
        except CostError as exc:
            return SizeLookup.failed(ident.key, exc)
        if not tarball:
            return SizeLookup.absent(ident.key, "no registry tarball")

        try:
            with self._registry.open_tarball(tarball) as stream:
                size_mb = probe(stream)
        except CostError as exc:
            return SizeLookup.failed(ident.key, exc)
        return SizeLookup.found(ident.key, round_to_precision(max(size_mb, Constants.MIN_UNIT_MB)))

    def _stored_manifest(self, key: str) -> Optional[Manifest]:
        """Manifest of a stored artifact, or None when unavailable."""
        try:
            data = self._artifacts.get_bytes(key)
        except StoreError as exc:
            logger.warning("Could not read stored artifact %s: %s", key, exc)
            return None
        return extract_manifest(data)

    def _walk(self, name: str, version_spec: str, report: TraversalReport, depth: int) -> None:
        """Record a lookup for every unvisited unit reachable from ``name@version_spec``."""
        visited = report.visited
        stack = [(PackageIdentity(name, version_spec), depth)]
        while stack:
            ident, level = stack.pop()
            if ident.key in visited:
                continue
            if len(visited) >= self._limits.max_units:
                if not report.truncated:
                    logger.warning(
                        "Unit ceiling (%s) reached; skipping %s and remaining dependencies",
                        self._limits.max_units, ident.key,
                    )
                report.truncated = True
                return
            visited.add(ident.key)

            with Timer() as timer:
                lookup = self._unit_size(ident)
            report.record(lookup)
            if is_debug_enabled(logger):
                logger.debug(
                    "Unit sized",
                    extra=extra_context(
                        event="resolve_unit",
                        component="resolver",
                        unit=ident.key,
                        depth=level,
                        outcome=lookup.status.value,
                        size_mb=lookup.megabytes,
                        duration_ms=timer.duration_ms()
                    )
                )

            manifest = self._stored_manifest(f"{ident.name}-{ident.version}")
            if manifest is None:
                continue
            children = [
                PackageIdentity(dep_name, dep_spec)
                for dep_name, dep_spec in manifest.dependencies.items()
            ]
            children = [child for child in children if child.key not in visited]
            if not children:
                continue

            if level >= self._limits.max_depth:
                # Children already queued at a shallower level are still sized.
                pending = {queued.key for queued, _ in stack}
                children = [child for child in children if child.key not in pending]
                if not children:
                    continue
                logger.warning(
                    "Depth ceiling (%s) reached at %s; %s dependencies not expanded",
                    self._limits.max_depth, ident.key, len(children),
                )
                report.truncated = True
                continue
            # Reverse so dependencies are visited in declaration order.
            for child in reversed(children):
                stack.append((child, level + 1))

    def resolve_transitive(
        self,
        name: str,
        version_spec: str,
        visited: Set[str],
        depth: int = 1,
    ) -> float:
        """Size of ``name@version_spec`` plus every dependency not yet in ``visited``.

        ``visited`` is updated in place. Returns 0 when the unit was already
        visited.
        """
        report = TraversalReport(visited=visited)
        self._walk(name, version_spec, report, depth)
        return aggregate(report, self._policy)

    # -- totals -----------------------------------------------------------

    def _resolve_report(self, item: PackageItem) -> Tuple[SizeLookup, TraversalReport]:
        report = TraversalReport()
        # The root is visited up front so dependency cycles back to it are not re-counted.
        report.visited.add(PackageIdentity(item.name, item.version).key)
        standalone = self.standalone_lookup(item)
        report.record(standalone)

        manifest = self._stored_manifest(item.artifact_key)
        if manifest is not None:
            for dep_name, dep_spec in manifest.dependencies.items():
                self._walk(dep_name, dep_spec, report, depth=1)
        return standalone, report

    def resolve_total(self, item: PackageItem) -> float:
        """Standalone size plus the deduplicated size of all transitive dependencies."""
        _, report = self._resolve_report(item)
        return round_to_precision(aggregate(report, self._policy))

    def resolve(self, item: PackageItem) -> ResolutionResult:
        """Compute both rounded sizes from a single traversal."""
        with Timer() as timer:
            standalone, report = self._resolve_report(item)
            total_mb = round_to_precision(aggregate(report, self._policy))
            # Reaching here means the policy accepted the standalone lookup as-is.
            standalone_mb = standalone.megabytes if standalone.status == LookupStatus.FOUND else 0.0
        logger.info(
            "Resolved %s@%s: standalone=%s MB total=%s MB (%s units, %s failed%s) in %s ms",
            item.name, item.version, standalone_mb, total_mb,
            len(report.visited), len(report.failures),
            ", truncated" if report.truncated else "", timer.duration_ms(),
        )
        return ResolutionResult(standalone_cost=standalone_mb, total_cost=max(total_mb, standalone_mb))
