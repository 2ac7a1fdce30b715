"""Dependency manifest extraction from stored zip artifacts."""
from __future__ import annotations

import io
import json
import logging
import posixpath
import zipfile
import zlib
from typing import List, Optional

from constants import Constants
from sizing.models import Manifest

logger = logging.getLogger(__name__)


def _is_vendored(path: str) -> bool:
    """True if any directory component of ``path`` is the vendored-dependency dir."""
    return Constants.VENDORED_DIR in path.replace("\\", "/").split("/")[:-1]


def _manifest_candidates(names: List[str]) -> List[str]:
    """Manifest paths outside vendored trees, shallowest first."""
    candidates = [
        n for n in names
        if posixpath.basename(n.replace("\\", "/")) == Constants.MANIFEST_FILE and not _is_vendored(n)
    ]
    return sorted(candidates, key=lambda n: (n.replace("\\", "/").count("/"), n))


def extract_manifest(zip_bytes: Optional[bytes]) -> Optional[Manifest]:
    """Find and parse the package-root manifest inside a zip archive.

    Only the shallowest ``package.json`` not under ``node_modules/`` is
    considered. Returns None (not an error) when the bytes are not a zip,
    no manifest exists, or the manifest is not a JSON object.
    """
    if not zip_bytes:
        return None
    try:
        with zipfile.ZipFile(io.BytesIO(zip_bytes)) as archive:
            candidates = _manifest_candidates(archive.namelist())
            if not candidates:
                return None
            info = archive.getinfo(candidates[0])
            if info.file_size > Constants.MAX_MANIFEST_BYTES:
                logger.warning("Manifest %s exceeds %s bytes; ignoring", info.filename, Constants.MAX_MANIFEST_BYTES)
                return None
            raw = archive.read(info)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError, RuntimeError) as exc:
        # RuntimeError: encrypted entries
        logger.debug("Artifact is not a readable zip: %s", exc)
        return None

    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.debug("Manifest %s is not valid JSON", candidates[0])
        return None
    if not isinstance(data, dict):
        return None

    deps = data.get("dependencies") or {}
    if not isinstance(deps, dict):
        return Manifest()
    return Manifest(dependencies={str(k): str(v) for k, v in deps.items() if isinstance(v, str)})
