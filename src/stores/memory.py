"""In-process stores, handy for embedding and tests."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from stores.base import PackageItem, artifact_key


class MemoryMetadataStore:
    """Metadata store backed by a dict of PackageItem keyed by id."""

    def __init__(self, items: Optional[Iterable[PackageItem]] = None):
        self._items: Dict[str, PackageItem] = {}
        for item in items or ():
            self.add(item)

    def add(self, item: PackageItem) -> None:
        self._items[item.id] = item

    def lookup_by_id(self, package_id: str) -> Optional[PackageItem]:
        return self._items.get(package_id)


class MemoryArtifactStore:
    """Artifact store backed by a dict of bytes keyed by artifact key."""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self._objects: Dict[str, bytes] = {}
        for key, data in (objects or {}).items():
            self.put(key, data)

    def put(self, key: str, data: bytes) -> None:
        self._objects[artifact_key(key)] = data

    def head_size(self, key: str) -> Optional[int]:
        data = self._objects.get(artifact_key(key))
        return None if data is None else len(data)

    def get_bytes(self, key: str) -> Optional[bytes]:
        return self._objects.get(artifact_key(key))
