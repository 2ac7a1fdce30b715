"""Filesystem-backed metadata and artifact stores."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import yaml

from errors import StoreError
from stores.base import PackageItem, artifact_key

logger = logging.getLogger(__name__)


class LocalArtifactStore:
    """Artifacts stored as files under a root directory.

    Keys map to relative paths (``<root>/<key>.zip``); keys escaping the
    root are rejected.
    """

    def __init__(self, root: str):
        self._root = os.path.abspath(root)

    @property
    def root(self) -> str:
        return self._root

    def _path_for(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self._root, artifact_key(key).lstrip("/\\")))
        if os.path.commonpath([path, self._root]) != self._root:
            raise StoreError(f"Artifact key escapes store root: {key}")
        return path

    def head_size(self, key: str) -> Optional[int]:
        path = self._path_for(key)
        try:
            return os.stat(path).st_size
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"Cannot stat artifact {key}: {exc}") from exc

    def get_bytes(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        try:
            with open(path, "rb") as fh:
                return fh.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"Cannot read artifact {key}: {exc}") from exc


class FileMetadataStore:
    """Package records read from a YAML or JSON index file.

    The index is either a mapping of ``id -> record`` or a list of records
    carrying their own ``id``/``ID`` field. It is re-read on every lookup so
    edits are visible without a restart.
    """

    def __init__(self, index_path: str):
        self._index_path = index_path

    def _load(self) -> Dict[str, PackageItem]:
        try:
            with open(self._index_path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except FileNotFoundError as exc:
            raise StoreError(f"Metadata index not found: {self._index_path}") from exc
        except (OSError, yaml.YAMLError) as exc:
            raise StoreError(f"Cannot load metadata index {self._index_path}: {exc}") from exc

        records: Dict[str, PackageItem] = {}
        if data is None:
            return records
        if isinstance(data, dict):
            data = data.get("packages", data)
        if isinstance(data, dict):
            for pkg_id, record in data.items():
                if isinstance(record, dict):
                    item = PackageItem.from_record(record, default_id=str(pkg_id))
                    records[item.id] = item
        elif isinstance(data, list):
            for record in data:
                if isinstance(record, dict):
                    item = PackageItem.from_record(record)
                    records[item.id] = item
        else:
            raise StoreError(f"Unsupported metadata index shape in {self._index_path}")
        return records

    def lookup_by_id(self, package_id: str) -> Optional[PackageItem]:
        item = self._load().get(package_id)
        if item is None:
            logger.debug("Package %s not present in %s", package_id, self._index_path)
        return item
