"""Package cost HTTP server using aiohttp."""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass
from typing import Any, Optional

from aiohttp import web

from constants import Constants
from errors import InvalidRequest, NotFound
from sizing.service import PackageCostService

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """Configuration for the cost server."""

    host: str = Constants.SERVER_HOST
    port: int = Constants.SERVER_PORT
    allow_external: bool = False

    @classmethod
    def from_args(cls, args: Any) -> "ServerConfig":
        """Create config from CLI arguments, falling back to configured constants.

        Args:
            args: Parsed CLI arguments namespace.

        Returns:
            ServerConfig instance.
        """
        host = getattr(args, "SERVER_HOST", None) or Constants.SERVER_HOST
        port = getattr(args, "SERVER_PORT", None)
        return cls(
            host=host,
            port=Constants.SERVER_PORT if port is None else int(port),
            allow_external=bool(getattr(args, "ALLOW_EXTERNAL", False)),
        )


def _parse_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


class PackageCostServer:
    """HTTP front end for the package-cost operation.

    Each request runs its resolution in a worker thread with its own
    traversal state; requests share nothing but the service's collaborators.
    """

    def __init__(self, config: ServerConfig, service: PackageCostService):
        """Initialize the server.

        Args:
            config: Server configuration.
            service: Package cost service answering queries.
        """
        self._config = config
        self._service = service
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None

    def _create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application()
        app.router.add_get("/_pkgcost/health", self._health_check)
        app.router.add_get("/package/{id}/cost", self._handle_cost)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _health_check(self, request: web.Request) -> web.Response:
        """Health check endpoint."""
        return web.json_response({"status": "ok"})

    async def _on_startup(self, app: web.Application) -> None:
        logger.info("Cost server starting on %s:%s", self._config.host, self._config.port)

    async def _on_cleanup(self, app: web.Application) -> None:
        logger.info("Cost server stopped")

    async def _handle_cost(self, request: web.Request) -> web.Response:
        """Handle ``GET /package/{id}/cost?dependency=true|false``.

        Args:
            request: Incoming HTTP request.

        Returns:
            JSON response with the cost body or an error message.
        """
        package_id = request.match_info.get("id")
        include_dependencies = _parse_flag(request.query.get("dependency"))
        logger.info("Request: cost %s (dependencies=%s)", package_id, include_dependencies)

        try:
            body = await asyncio.to_thread(
                self._service.package_cost, package_id, include_dependencies
            )
        except InvalidRequest as exc:
            return web.json_response({"message": str(exc)}, status=400)
        except NotFound as exc:
            return web.json_response({"message": str(exc)}, status=404)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected failure computing cost for %s", package_id)
            return web.json_response({"message": "Unexpected error occurred."}, status=500)

        return web.json_response(body)

    async def start(self) -> None:
        """Start the server."""
        self._app = self._create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        site = web.TCPSite(
            self._runner,
            self._config.host,
            self._config.port,
        )
        await site.start()

        logger.info(
            "pkgcost server listening on http://%s:%s",
            self._config.host, self._config.port,
        )

    async def stop(self) -> None:
        """Stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._app = None


def run_server_sync(config: ServerConfig, service: PackageCostService) -> None:
    """Run the server synchronously.

    Installs signal handlers for SIGTERM and SIGINT for clean shutdown.

    Args:
        config: Server configuration.
        service: Package cost service.
    """
    server = PackageCostServer(config, service)
    loop = asyncio.new_event_loop()

    async def run():
        await server.start()
        stop_event = asyncio.Event()
        running_loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            running_loop.add_signal_handler(sig, stop_event.set)
        await stop_event.wait()
        logger.info("Shutdown signal received, stopping...")
        await server.stop()

    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work (Windows)
        loop.run_until_complete(server.stop())
    finally:
        loop.close()
        logger.info("Cost server shutdown complete")
