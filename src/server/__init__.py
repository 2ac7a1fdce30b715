"""pkgcost HTTP server package.

Exposes the package-cost operation over HTTP.
"""

from .server import PackageCostServer, ServerConfig, run_server_sync

__all__ = [
    "PackageCostServer",
    "ServerConfig",
    "run_server_sync",
]
