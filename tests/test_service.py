"""Tests for the transport-independent package-cost operation."""

import pytest

from conftest import MB, FakeRegistry, package_zip
from errors import InvalidRequest, NotFound
from sizing.models import TraversalLimits
from sizing.precision import round_to_precision
from sizing.resolver import SizeResolver
from sizing.service import PackageCostService, validate_package_id
from stores.base import PackageItem
from stores.memory import MemoryArtifactStore, MemoryMetadataStore


@pytest.fixture
def service():
    items = [
        PackageItem(id="left-pad", name="left-pad", version="1.0.0", artifact_key="left-pad-1.0.0"),
        PackageItem(id="app", name="app", version="1.0.0", artifact_key="app-1.0.0"),
    ]
    artifacts = MemoryArtifactStore({
        "left-pad-1.0.0": b"\0" * 2097,
        "app-1.0.0": package_zip({"lib": "^1.0.0"}, root="app"),
        "lib-1.0.0": package_zip({"app": "1.0.0"}, root="lib"),
    })
    registry = FakeRegistry({("lib", "1.0.0"): MB // 2, ("app", "1.0.0"): MB})
    resolver = SizeResolver(MemoryMetadataStore(items), artifacts, registry, limits=TraversalLimits())
    return PackageCostService(resolver)


@pytest.mark.parametrize("package_id", ["left-pad", "A1", "a-b-c-123"])
def test_valid_ids(package_id):
    assert validate_package_id(package_id) == package_id


@pytest.mark.parametrize("package_id", [None, "", "left pad", "left_pad", "../etc", "a/b", "ü", "left-pad\n"])
def test_invalid_ids(package_id):
    with pytest.raises(InvalidRequest, match="Missing or invalid PackageID"):
        validate_package_id(package_id)


def test_standalone_only_body(service):
    assert service.package_cost("left-pad") == {"left-pad": {"totalCost": 0.002}}


def test_with_dependencies_body(service):
    assert service.package_cost("left-pad", include_dependencies=True) == {
        "left-pad": {"standaloneCost": 0.002, "totalCost": 0.002}
    }


def test_cycle_through_root(service):
    body = service.package_cost("app", include_dependencies=True)["app"]
    assert body["totalCost"] == round_to_precision(body["standaloneCost"] + 0.5)


def test_repeated_queries_are_independent(service):
    first = service.package_cost("app", include_dependencies=True)
    second = service.package_cost("app", include_dependencies=True)
    assert first == second


def test_unknown_package(service):
    with pytest.raises(NotFound):
        service.package_cost("missing", include_dependencies=True)


def test_invalid_id_is_rejected_before_lookup(service):
    with pytest.raises(InvalidRequest):
        service.package_cost("bad id")
