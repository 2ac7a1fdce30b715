"""NPM registry client: packuments, tarball resolution and tarball streaming."""

from __future__ import annotations

import logging
import urllib.parse
from contextlib import contextmanager
from typing import Any, BinaryIO, Dict, Iterator, Optional

from constants import Constants
from common import http_client
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import RegistryLookupFailure
from sizing.models import normalize_version_spec

from .versions import pick_matching_version

logger = logging.getLogger(__name__)

PACKUMENT_HEADERS = {
    "Accept": "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8, */*"
}


def package_url(base_url: str, name: str) -> str:
    """Build the packument URL, encoding the slash of scoped names."""
    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return base + urllib.parse.quote(name, safe="@")


def _mapping(value: Any, field: str, name: str) -> Dict[str, Any]:
    """Return ``value`` as a mapping; missing means empty, any other type is malformed."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RegistryLookupFailure(
            f"npm packument for {name} has a malformed '{field}' ({type(value).__name__})"
        )
    return value


class NpmRegistryClient:
    """Resolve npm package versions to tarball URLs and stream tarballs."""

    def __init__(self, base_url: Optional[str] = None):
        self._base_url = base_url or Constants.REGISTRY_URL_NPM

    @property
    def base_url(self) -> str:
        return self._base_url

    def get_packument(self, name: str) -> Optional[Dict[str, Any]]:
        """Fetch the abbreviated packument for ``name``.

        Returns:
            The packument dict, or None when the registry answers 404.

        Raises:
            RegistryLookupFailure: On transport failure, non-2xx/404 status,
                or an undecodable body.
        """
        url = package_url(self._base_url, name)
        with Timer() as timer:
            status, _, data = http_client.get_json(url, headers=PACKUMENT_HEADERS)

        if status == 404:
            logger.warning(
                "Package not found in registry",
                extra=extra_context(
                    event="http_response",
                    outcome="not_found",
                    status_code=404,
                    target=safe_url(url),
                    package_manager="npm"
                )
            )
            return None
        if status != 200:
            raise RegistryLookupFailure(f"npm registry returned status {status} for {name}")
        if not isinstance(data, dict):
            raise RegistryLookupFailure(f"npm registry returned an undecodable packument for {name}")

        if is_debug_enabled(logger):
            logger.debug(
                "Packument fetched",
                extra=extra_context(
                    event="http_response",
                    outcome="success",
                    status_code=status,
                    duration_ms=timer.duration_ms(),
                    package_manager="npm",
                    version_count=len(data.get("versions") or {})
                )
            )
        return data

    def get_version_tarball(self, name: str, version_spec: str) -> Optional[str]:
        """Return the tarball URL best matching ``version_spec``, or None.

        Lookup order: the exact normalized version, then the highest version
        satisfying the spec as an npm range, then ``dist-tags.latest``.

        Raises:
            RegistryLookupFailure: If the packument does not have the npm shape.
        """
        packument = self.get_packument(name)
        if not packument:
            return None

        versions = _mapping(packument.get("versions"), "versions", name)
        normalized = normalize_version_spec(version_spec)
        version_data = versions.get(normalized)
        chosen = normalized
        if version_data is None and version_spec:
            candidates = [v for v in versions if isinstance(v, str)]
            matched = pick_matching_version(version_spec.strip(), candidates)
            if matched is not None:
                chosen, version_data = matched, versions.get(matched)
        if version_data is None:
            latest = _mapping(packument.get("dist-tags"), "dist-tags", name).get("latest")
            if latest is not None and not isinstance(latest, str):
                raise RegistryLookupFailure(f"npm packument for {name} has a non-string latest tag")
            chosen, version_data = latest, versions.get(latest) if latest else None

        version_data = _mapping(version_data, f"versions[{chosen}]", name)
        tarball = _mapping(version_data.get("dist"), f"versions[{chosen}].dist", name).get("tarball")
        if tarball is not None and not isinstance(tarball, str):
            raise RegistryLookupFailure(f"npm packument for {name} has a non-string tarball for {chosen}")
        if is_debug_enabled(logger):
            logger.debug(
                "Resolved tarball",
                extra=extra_context(
                    event="decision",
                    component="client",
                    action="get_version_tarball",
                    outcome="resolved" if tarball else "no_tarball",
                    package_manager="npm",
                    requested_spec=version_spec,
                    resolved_version=chosen
                )
            )
        return tarball or None

    @contextmanager
    def open_tarball(self, url: str) -> Iterator[BinaryIO]:
        """Stream a tarball; yields a non-seekable file object."""
        with http_client.open_stream(url) as stream:
            yield stream
