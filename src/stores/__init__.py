"""Metadata and artifact store implementations."""

from .base import ArtifactStore, MetadataStore, PackageItem, artifact_key
from .local import FileMetadataStore, LocalArtifactStore
from .memory import MemoryArtifactStore, MemoryMetadataStore

__all__ = [
    "ArtifactStore",
    "MetadataStore",
    "PackageItem",
    "artifact_key",
    "FileMetadataStore",
    "LocalArtifactStore",
    "MemoryArtifactStore",
    "MemoryMetadataStore",
]
