"""The package-cost operation, independent of transport."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from constants import Constants
from errors import InvalidRequest
from sizing.resolver import SizeResolver

logger = logging.getLogger(__name__)

_PACKAGE_ID_RE = re.compile(Constants.PACKAGE_ID_PATTERN)


def validate_package_id(package_id: Optional[str]) -> str:
    """Return ``package_id`` if it is a non-empty ``[A-Za-z0-9-]+`` token.

    Raises:
        InvalidRequest: If the identifier is missing or malformed.
    """
    if not package_id or not _PACKAGE_ID_RE.fullmatch(package_id):
        raise InvalidRequest("Missing or invalid PackageID")
    return package_id


class PackageCostService:
    """Answers package-cost queries; every call builds fresh traversal state."""

    def __init__(self, resolver: SizeResolver):
        self._resolver = resolver

    @property
    def resolver(self) -> SizeResolver:
        return self._resolver

    def package_cost(self, package_id: Optional[str], include_dependencies: bool = False) -> Dict[str, Any]:
        """Compute the cost body for ``package_id``.

        Returns:
            ``{id: {"totalCost": mb}}`` or, with dependencies,
            ``{id: {"standaloneCost": mb, "totalCost": mb}}``.

        Raises:
            InvalidRequest: Malformed identifier.
            NotFound: Identifier unknown to the metadata store.
        """
        package_id = validate_package_id(package_id)
        item = self._resolver.lookup_package(package_id)

        if not include_dependencies:
            standalone = self._resolver.resolve_standalone(item)
            return {package_id: {"totalCost": standalone}}

        result = self._resolver.resolve(item)
        return {
            package_id: {
                "standaloneCost": result.standalone_cost,
                "totalCost": result.total_cost,
            }
        }
