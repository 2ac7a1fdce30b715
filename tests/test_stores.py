"""Tests for the filesystem and in-memory stores."""

import os

import pytest

from errors import StoreError
from stores.local import FileMetadataStore, LocalArtifactStore
from stores.memory import MemoryArtifactStore, MemoryMetadataStore
from stores.base import PackageItem


class TestLocalArtifactStore:
    """Artifacts stored as <root>/<key>.zip."""

    def test_head_size_and_bytes(self, tmp_path):
        (tmp_path / "left-pad-1.0.0.zip").write_bytes(b"x" * 2097)
        store = LocalArtifactStore(str(tmp_path))
        assert store.head_size("left-pad-1.0.0") == 2097
        assert store.head_size("left-pad-1.0.0.zip") == 2097
        assert store.get_bytes("left-pad-1.0.0") == b"x" * 2097

    def test_nested_keys(self, tmp_path):
        (tmp_path / "uploads").mkdir()
        (tmp_path / "uploads" / "app-1.0.0.zip").write_bytes(b"abc")
        assert LocalArtifactStore(str(tmp_path)).head_size("uploads/app-1.0.0") == 3

    def test_missing_object_is_none(self, tmp_path):
        store = LocalArtifactStore(str(tmp_path))
        assert store.head_size("ghost-1.0.0") is None
        assert store.get_bytes("ghost-1.0.0") is None

    def test_keys_cannot_escape_root(self, tmp_path):
        store = LocalArtifactStore(str(tmp_path / "store"))
        with pytest.raises(StoreError):
            store.get_bytes("../secrets")

    def test_unreadable_object_raises(self, tmp_path):
        os.mkdir(tmp_path / "dir-1.0.0.zip")
        with pytest.raises(StoreError):
            LocalArtifactStore(str(tmp_path)).get_bytes("dir-1.0.0")


class TestFileMetadataStore:
    """Package records from a YAML index."""

    def test_mapping_index(self, tmp_path):
        index = tmp_path / "packages.yml"
        index.write_text(
            "packages:\n"
            "  left-pad:\n"
            "    name: left-pad\n"
            "    version: 1.0.0\n"
            "  app:\n"
            "    Name: app\n"
            "    Version: '2.0.0'\n"
            "    s3Key: uploads/app-2.0.0\n",
            encoding="utf-8",
        )
        store = FileMetadataStore(str(index))
        assert store.lookup_by_id("left-pad") == PackageItem("left-pad", "left-pad", "1.0.0", "left-pad-1.0.0")
        assert store.lookup_by_id("app").artifact_key == "uploads/app-2.0.0"
        assert store.lookup_by_id("missing") is None

    def test_list_index_in_json(self, tmp_path):
        index = tmp_path / "packages.json"
        index.write_text('[{"ID": "pad", "Name": "left-pad", "Version": "1.0.0"}]', encoding="utf-8")
        assert FileMetadataStore(str(index)).lookup_by_id("pad").name == "left-pad"

    def test_index_is_reread(self, tmp_path):
        index = tmp_path / "packages.yml"
        index.write_text("{}\n", encoding="utf-8")
        store = FileMetadataStore(str(index))
        assert store.lookup_by_id("a") is None
        index.write_text("a: {name: a, version: 1.0.0}\n", encoding="utf-8")
        assert store.lookup_by_id("a").version == "1.0.0"

    def test_empty_index(self, tmp_path):
        index = tmp_path / "packages.yml"
        index.write_text("", encoding="utf-8")
        assert FileMetadataStore(str(index)).lookup_by_id("a") is None

    def test_missing_index_raises(self, tmp_path):
        with pytest.raises(StoreError, match="not found"):
            FileMetadataStore(str(tmp_path / "nope.yml")).lookup_by_id("a")

    def test_malformed_index_raises(self, tmp_path):
        index = tmp_path / "packages.yml"
        index.write_text("a: [unclosed\n", encoding="utf-8")
        with pytest.raises(StoreError):
            FileMetadataStore(str(index)).lookup_by_id("a")

    def test_scalar_index_raises(self, tmp_path):
        index = tmp_path / "packages.yml"
        index.write_text("just a string\n", encoding="utf-8")
        with pytest.raises(StoreError, match="Unsupported"):
            FileMetadataStore(str(index)).lookup_by_id("a")


class TestMemoryStores:
    """In-process stores."""

    def test_metadata(self):
        item = PackageItem("a", "a", "1.0.0", "a-1.0.0")
        store = MemoryMetadataStore([item])
        assert store.lookup_by_id("a") is item
        assert store.lookup_by_id("b") is None

    def test_artifacts_normalize_keys(self):
        store = MemoryArtifactStore({"a-1.0.0": b"abcd"})
        store.put("b-1.0.0.zip", b"ef")
        assert store.head_size("a-1.0.0.zip") == 4
        assert store.get_bytes("b-1.0.0") == b"ef"
        assert store.head_size("c-1.0.0") is None
