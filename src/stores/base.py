"""Collaborator contracts for package metadata and stored artifacts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from constants import Constants
from errors import StoreError


@dataclass(frozen=True)
class PackageItem:
    """A package record held by the metadata store."""
    id: str
    name: str
    version: str
    artifact_key: str

    @classmethod
    def from_record(cls, record: Dict[str, Any], default_id: Optional[str] = None) -> "PackageItem":
        """Build an item from a stored record.

        Accepts lower-case keys (``id``, ``name``, ``version``, ``artifactKey``)
        as well as the capitalised ``ID``/``Name``/``Version``/``s3Key`` shape.
        """
        def _pick(*keys: str) -> Optional[str]:
            for key in keys:
                value = record.get(key)
                if value not in (None, ""):
                    return str(value)
            return None

        pkg_id = _pick("id", "ID") or default_id
        name = _pick("name", "Name")
        version = _pick("version", "Version")
        key = _pick("artifactKey", "artifact_key", "s3Key")
        if not pkg_id or not name or not version:
            raise StoreError(f"Incomplete package record: {record!r}")
        return cls(id=pkg_id, name=name, version=version, artifact_key=key or f"{name}-{version}")


def artifact_key(key: str) -> str:
    """Append the artifact suffix (``.zip``) unless already present."""
    return key if key.endswith(Constants.ARTIFACT_SUFFIX) else f"{key}{Constants.ARTIFACT_SUFFIX}"


class MetadataStore(Protocol):
    """Persistent lookup of package records by identifier."""

    def lookup_by_id(self, package_id: str) -> Optional[PackageItem]:
        """Return the record for ``package_id`` or None; raise StoreError on failure."""
        ...


class ArtifactStore(Protocol):
    """Binary artifact storage keyed by artifact key."""

    def head_size(self, key: str) -> Optional[int]:
        """Return the stored object's byte length or None; raise StoreError on failure."""
        ...

    def get_bytes(self, key: str) -> Optional[bytes]:
        """Return the stored object's content or None; raise StoreError on failure."""
        ...
