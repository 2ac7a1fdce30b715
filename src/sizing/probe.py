"""Streaming size probe for gzip-compressed tar archives.

The archive is read strictly front to back: the input is inflated chunk by
chunk into a tar entry iterator and each file entry is drained in fixed-size
chunks. Nothing is written to disk and at most one chunk of entry data is
held in memory.

The gzip member must run to its trailer (length and CRC checked), so a
download cut short is reported even when the cut falls exactly between two
tar entries. A well-formed gzip member around a tar that simply lacks its
end-of-archive blocks is still read as-is.
"""
from __future__ import annotations

import io
import logging
import tarfile
import zlib
from typing import BinaryIO

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from errors import ArchiveCorrupt
from sizing.precision import bytes_to_megabytes

logger = logging.getLogger(__name__)


class GunzipReader(io.RawIOBase):
    """Forward-only gunzip over a byte stream that requires a complete gzip member."""

    def __init__(self, raw: BinaryIO):
        super().__init__()
        self._raw = raw
        self._inflater = zlib.decompressobj(wbits=16 + zlib.MAX_WBITS)
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            if self._inflater.eof:
                return 0
            data = self._inflater.unconsumed_tail
            if not data:
                data = self._raw.read(Constants.STREAM_CHUNK_SIZE)
                if not data:
                    raise ArchiveCorrupt("gzip stream ended before its trailer")
            self._pending = self._inflater.decompress(data, Constants.STREAM_CHUNK_SIZE)
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


def _drain(handle: BinaryIO) -> int:
    """Read ``handle`` to EOF and return the number of bytes seen."""
    total = 0
    while True:
        chunk = handle.read(Constants.STREAM_CHUNK_SIZE)
        if not chunk:
            return total
        total += len(chunk)


def probe_bytes(stream: BinaryIO) -> int:
    """Return the summed uncompressed length of every file entry in a .tar.gz stream.

    Raises:
        ArchiveCorrupt: If decompression or tar parsing fails, or the gzip
            stream ends before its trailer.
    """
    total = 0
    entries = 0
    inflated = GunzipReader(stream)
    try:
        with tarfile.open(fileobj=inflated, mode="r|") as archive:
            for member in archive:
                if not member.isfile():
                    continue
                handle = archive.extractfile(member)
                if handle is None:
                    continue
                total += _drain(handle)
                entries += 1
        # Tar padding after the end-of-archive marker, then the gzip trailer.
        _drain(inflated)
    except (tarfile.TarError, zlib.error, EOFError) as exc:
        raise ArchiveCorrupt(f"Unreadable tar.gz archive: {exc}") from exc
    except OSError as exc:
        # read errors from the underlying stream
        raise ArchiveCorrupt(f"Unreadable tar.gz archive: {exc}") from exc

    if is_debug_enabled(logger):
        logger.debug(
            "Archive probed",
            extra=extra_context(
                event="probe",
                component="probe",
                action="probe_bytes",
                outcome="success",
                entries=entries,
                size_bytes=total
            )
        )
    return total


def probe(stream: BinaryIO) -> float:
    """Return the uncompressed content size of a .tar.gz stream in megabytes."""
    return bytes_to_megabytes(probe_bytes(stream))
