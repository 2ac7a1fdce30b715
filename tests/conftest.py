"""Shared fixtures: archive builders, a fake npm registry and Constants isolation."""

import io
import json
import tarfile
import zipfile
from contextlib import contextmanager

import pytest

from constants import Constants
from errors import RegistryLookupFailure
from sizing.models import normalize_version_spec

MB = 1024 * 1024


def make_tgz(files):
    """Build a .tar.gz in memory from ``{path: bytes}``."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for path, data in files.items():
            info = tarfile.TarInfo(name=path)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(files):
    """Build a .zip in memory from ``{path: bytes|str|dict}``; dicts are written as JSON."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path, data in files.items():
            if isinstance(data, dict):
                data = json.dumps(data)
            zf.writestr(path, data)
    return buf.getvalue()


def package_zip(dependencies=None, root="package"):
    """A stored artifact whose root manifest declares ``dependencies``."""
    manifest = {"name": root, "version": "1.0.0"}
    if dependencies is not None:
        manifest["dependencies"] = dependencies
    return make_zip({f"{root}/package.json": manifest, f"{root}/index.js": "module.exports = 1;\n"})


class NonSeekable(io.RawIOBase):
    """Wraps bytes as a forward-only stream, like a network body."""

    def __init__(self, data):
        super().__init__()
        self._inner = io.BytesIO(data)

    def readable(self):
        return True

    def seekable(self):
        return False

    def readinto(self, buffer):
        chunk = self._inner.read(len(buffer))
        buffer[:len(chunk)] = chunk
        return len(chunk)


class FakeRegistry:
    """In-memory stand-in for NpmRegistryClient.

    ``packages`` maps ``(name, version)`` to uncompressed payload size in bytes.
    Names in ``failing`` raise RegistryLookupFailure; urls in ``corrupt`` stream garbage.
    """

    def __init__(self, packages=None, failing=(), corrupt=()):
        self._archives = {}
        for (name, version), size in (packages or {}).items():
            self._archives[self.url_for(name, version)] = make_tgz({"package/blob.bin": b"\0" * size})
        for name, version in corrupt:
            self._archives[self.url_for(name, version)] = b"definitely not gzip"
        self._failing = set(failing)
        self.lookups = []
        self.opened = []

    @staticmethod
    def url_for(name, version):
        return f"https://registry.test/{name}/-/{name}-{version}.tgz"

    def get_version_tarball(self, name, version_spec):
        self.lookups.append((name, version_spec))
        if name in self._failing:
            raise RegistryLookupFailure(f"registry unavailable for {name}")
        url = self.url_for(name, normalize_version_spec(version_spec))
        return url if url in self._archives else None

    @contextmanager
    def open_tarball(self, url):
        self.opened.append(url)
        yield NonSeekable(self._archives[url])


@pytest.fixture
def restore_constants():
    """Snapshot and restore every public Constants attribute around a test."""
    saved = {k: v for k, v in vars(Constants).items() if k.isupper()}
    yield Constants
    for key, value in saved.items():
        setattr(Constants, key, value)
