"""Tests for the package cost HTTP server."""

import asyncio
from unittest.mock import MagicMock

import pytest

aiohttp_mod = pytest.importorskip("aiohttp")

import aiohttp
import aiohttp.test_utils

from conftest import MB, FakeRegistry, package_zip
from errors import InvalidRequest, NotFound
from server.server import PackageCostServer, ServerConfig, _parse_flag
from sizing.models import TraversalLimits
from sizing.resolver import SizeResolver
from sizing.service import PackageCostService
from stores.base import PackageItem
from stores.memory import MemoryArtifactStore, MemoryMetadataStore


def _service():
    items = [
        PackageItem("left-pad", "left-pad", "1.0.0", "left-pad-1.0.0"),
        PackageItem("app", "app", "1.0.0", "app-1.0.0"),
    ]
    artifacts = MemoryArtifactStore({
        "left-pad-1.0.0": b"\0" * 2097,
        "app-1.0.0": package_zip({"lib": "1.0.0"}, root="app"),
    })
    registry = FakeRegistry({("lib", "1.0.0"): MB // 2})
    return PackageCostService(
        SizeResolver(MemoryMetadataStore(items), artifacts, registry, limits=TraversalLimits())
    )


def _get(service, path):
    """Issue one GET against a fresh test server; returns (status, json body)."""

    async def _run():
        server = PackageCostServer(ServerConfig(port=0), service)
        async with aiohttp.test_utils.TestServer(server._create_app()) as ts:
            async with aiohttp.ClientSession() as session:
                resp = await session.get(f"http://{ts.host}:{ts.port}{path}")
                return resp.status, await resp.json()

    return asyncio.run(_run())


class TestServerConfig:
    """ServerConfig defaults and CLI mapping."""

    def test_defaults(self):
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.allow_external is False

    def test_from_args(self):
        args = MagicMock()
        args.SERVER_HOST = "0.0.0.0"
        args.SERVER_PORT = "9000"
        args.ALLOW_EXTERNAL = True
        config = ServerConfig.from_args(args)
        assert (config.host, config.port, config.allow_external) == ("0.0.0.0", 9000, True)

    def test_from_args_falls_back_to_constants(self, restore_constants):
        restore_constants.SERVER_PORT = 9999
        args = MagicMock(SERVER_HOST=None, SERVER_PORT=None, ALLOW_EXTERNAL=False)
        assert ServerConfig.from_args(args).port == 9999


@pytest.mark.parametrize("value,expected", [
    ("true", True), ("TRUE", True), (" True ", True),
    ("false", False), ("1", False), ("", False), (None, False),
])
def test_dependency_flag(value, expected):
    assert _parse_flag(value) is expected


class TestCostEndpoint:
    """GET /package/{id}/cost."""

    def test_health(self):
        assert _get(_service(), "/_pkgcost/health") == (200, {"status": "ok"})

    def test_standalone_cost(self):
        assert _get(_service(), "/package/left-pad/cost") == (200, {"left-pad": {"totalCost": 0.002}})

    def test_cost_with_dependencies(self):
        status, body = _get(_service(), "/package/left-pad/cost?dependency=true")
        assert status == 200
        assert body == {"left-pad": {"standaloneCost": 0.002, "totalCost": 0.002}}

    def test_dependency_flag_other_than_true_is_standalone(self):
        status, body = _get(_service(), "/package/app/cost?dependency=yes")
        assert status == 200
        assert list(body["app"]) == ["totalCost"]

    def test_dependencies_are_added(self):
        status, body = _get(_service(), "/package/app/cost?dependency=true")
        assert status == 200
        assert body["app"]["totalCost"] > body["app"]["standaloneCost"]

    def test_invalid_id_is_400(self):
        status, body = _get(_service(), "/package/bad_id/cost")
        assert status == 400
        assert body == {"message": "Missing or invalid PackageID"}

    def test_unknown_id_is_404(self):
        status, body = _get(_service(), "/package/ghost/cost")
        assert status == 404
        assert "ghost" in body["message"]

    def test_unexpected_error_is_500(self):
        service = MagicMock()
        service.package_cost.side_effect = RuntimeError("kaboom")
        status, body = _get(service, "/package/app/cost")
        assert status == 500
        assert body == {"message": "Unexpected error occurred."}

    def test_error_mapping_uses_service_exceptions(self):
        service = MagicMock()
        service.package_cost.side_effect = InvalidRequest("Missing or invalid PackageID")
        assert _get(service, "/package/x/cost")[0] == 400
        service.package_cost.side_effect = NotFound("Package x does not exist.")
        assert _get(service, "/package/x/cost")[0] == 404


class TestLifecycle:
    """start() binds a listening site and stop() releases it."""

    def test_start_then_stop(self):
        async def _run():
            server = PackageCostServer(ServerConfig(port=0), _service())
            await server.start()
            assert server._runner is not None
            assert server._runner.addresses
            await server.stop()
            assert server._runner is None
            # A second stop is a no-op.
            await server.stop()

        asyncio.run(_run())
