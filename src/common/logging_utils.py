"""Centralized logging helpers.

Provides one place to configure the root logger plus small utilities used by
every module that emits structured DEBUG traces: ``extra_context`` builds the
``extra=`` payload, ``safe_url``/``redact`` keep credentials out of logs and
``Timer`` measures outbound call latency.
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

REDACTED = "[REDACTED]"

_SENSITIVE_PARAMS = {"token", "access_token", "auth", "api_key", "apikey", "key", "password", "secret", "sig"}
_BEARER_RE = re.compile(r"(?i)(bearer\s+)[A-Za-z0-9\-._~+/]+=*")
_ASSIGNMENT_RE = re.compile(r"(?i)\b(token|password|secret|api_key|apikey)=([^&\s]+)")


def _resolve_level(default: str = "INFO") -> int:
    """Map the PKGCOST_LOG_LEVEL env var (or default) to a logging level."""
    name = os.environ.get(Constants.ENV_LOG_LEVEL, default).strip().upper()
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(log_file: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level.

    Args:
        log_file: Optional path for an additional file handler.
    """
    root = logging.getLogger()
    level = _resolve_level()
    if not any(getattr(h, "_pkgcost", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        handler._pkgcost = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        file_handler._pkgcost = True  # type: ignore[attr-defined]
        root.addHandler(file_handler)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def redact(text: str) -> str:
    """Mask bearer tokens and ``key=value`` secrets inside free text."""
    if not text:
        return text
    out = _BEARER_RE.sub(lambda m: m.group(1) + REDACTED, text)
    return _ASSIGNMENT_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", out)


def safe_url(url: str) -> str:
    """Return ``url`` with userinfo and sensitive query parameters masked."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{REDACTED}@{netloc.rsplit('@', 1)[1]}"

    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = "&".join(
            f"{k}={REDACTED if k.lower() in _SENSITIVE_PARAMS else v}" for k, v in pairs
        )

    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds; reads the running clock while still inside the block."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
