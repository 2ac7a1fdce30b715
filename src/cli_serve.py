"""CLI entry point for the pkgcost HTTP server.

Starts the aiohttp server exposing ``GET /package/{id}/cost``.
"""

from __future__ import annotations

import ipaddress
import logging
import sys
from typing import Any

from constants import ExitCodes
from server.server import ServerConfig, run_server_sync
from sizing.service import PackageCostService

logger = logging.getLogger(__name__)


def _is_local_bind_host(host: str) -> bool:
    """Return True if host is a loopback/local bind target."""
    if not host:
        return False
    host_lower = host.strip().lower()
    if host_lower in ("localhost",):
        return True
    try:
        return ipaddress.ip_address(host_lower).is_loopback
    except ValueError:
        # Non-IP hostnames are treated as non-local unless explicitly allowed.
        return False


def _enforce_local_binding(host: str, allow_external: bool) -> None:
    """Enforce local-only binding unless explicitly allowed."""
    if _is_local_bind_host(host):
        return
    if not allow_external:
        sys.stderr.write(
            "ERROR: Non-local bindings require --allow-external.\n"
        )
        sys.exit(ExitCodes.INVALID_REQUEST.value)
    logger.warning(
        "Binding server to non-local address (%s). Ensure network controls are in place.",
        host,
    )


def run_server(args: Any, service: PackageCostService) -> None:
    """Entry point for the ``serve`` command.

    Args:
        args: Parsed CLI arguments namespace.
        service: Configured package cost service.
    """
    config = ServerConfig.from_args(args)
    _enforce_local_binding(config.host, config.allow_external)

    print(
        f"\n"
        f"  pkgcost server\n"
        f"  ==============\n"
        f"  Listening: http://{config.host}:{config.port}\n"
        f"  Try: curl 'http://{config.host}:{config.port}/package/<id>/cost?dependency=true'\n"
        f"\n"
        f"  Press Ctrl+C to stop\n"
    )

    run_server_sync(config, service)
