"""NPM registry client package."""

from .client import NpmRegistryClient, package_url
from .versions import pick_matching_version

__all__ = ["NpmRegistryClient", "package_url", "pick_matching_version"]
