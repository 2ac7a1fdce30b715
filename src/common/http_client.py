"""Shared HTTP helpers used by the registry client.

Encapsulates timeout, retry and backoff handling so callers avoid
duplicating try/except blocks. Responses are never cached: every size query
re-derives its values from the registry.
"""
from __future__ import annotations

import io
import json
import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from errors import NetworkFailure

logger = logging.getLogger(__name__)

USER_AGENT = "pkgcost/1.0"


def _backoff(attempt: int) -> None:
    """Sleep before the next attempt (exponential, skipped after the last one)."""
    if attempt + 1 < Constants.HTTP_RETRY_MAX:
        time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** attempt))


def _default_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = {"User-Agent": USER_AGENT}
    if headers:
        merged.update(headers)
    return merged


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries with DEBUG traces.

    Server errors (5xx) and transport errors are retried with exponential
    backoff. After the last attempt a transport failure is reported as
    status 0 with the error text as body.
    """
    safe_target = safe_url(url)
    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=_default_headers(headers),
                    **kwargs
                )

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            outcome="success" if response.status_code < 500 else "server_error",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target
                        )
                    )
                if response.status_code >= 500 and attempt + 1 < Constants.HTTP_RETRY_MAX:
                    _backoff(attempt)
                    continue
                return response.status_code, dict(response.headers), response.text

            except requests.Timeout:
                last_exception = "timeout"
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                _backoff(attempt)
                continue
            except requests.RequestException as exc:
                last_exception = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                _backoff(attempt)
                continue

    # All retries failed
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response with DEBUG traces.

    Args:
        url: Target URL
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, headers=headers, **kwargs)

    if status_code == 200 and text:
        try:
            parsed = json.loads(text)
            if is_debug_enabled(logger):
                logger.debug(
                    "Parsed JSON response",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="success",
                        status_code=status_code,
                        target=safe_url(url)
                    )
                )
            return status_code, response_headers, parsed
        except json.JSONDecodeError:
            if is_debug_enabled(logger):
                logger.debug(
                    "JSON decode error",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="json_decode_error",
                        status_code=status_code,
                        target=safe_url(url)
                    )
                )
            return status_code, response_headers, None

    return status_code, response_headers, None


class ChunkReader(io.RawIOBase):
    """Minimal non-seekable file object over an iterator of byte chunks.

    Transport errors raised while pulling chunks surface as NetworkFailure.
    """

    def __init__(self, chunks: Iterator[bytes], target: str = ""):
        super().__init__()
        self._chunks = iter(chunks)
        self._pending = b""
        self._target = target

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except requests.RequestException as exc:
                raise NetworkFailure(f"Stream from {self._target} interrupted: {exc}") from exc
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


@contextmanager
def open_stream(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
) -> Iterator[Any]:
    """Open a streaming GET and yield the body as a read-only file object.

    Connection setup is retried like ``robust_get``; once bytes start flowing
    the caller owns the stream and read errors propagate. The response is
    always released on exit.

    Raises:
        NetworkFailure: When the connection cannot be established or the
            server answers with a non-2xx status.
    """
    safe_target = safe_url(url)
    response = None
    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        try:
            response = requests.get(
                url,
                timeout=Constants.REQUEST_TIMEOUT,
                headers=_default_headers(headers),
                stream=True,
            )
        except requests.RequestException as exc:
            last_exception = str(exc)
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP stream exception",
                    extra=extra_context(
                        event="http_exception",
                        component="http_client",
                        action="STREAM",
                        outcome="request_exception",
                        attempt=attempt + 1,
                        target=safe_target
                    )
                )
            _backoff(attempt)
            continue

        if response.status_code >= 500 and attempt + 1 < Constants.HTTP_RETRY_MAX:
            response.close()
            response = None
            _backoff(attempt)
            continue
        break

    if response is None:
        raise NetworkFailure(
            f"Stream request to {safe_target} failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"
        )

    try:
        if not 200 <= response.status_code < 300:
            raise NetworkFailure(f"Stream request to {safe_target} returned HTTP {response.status_code}")
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP stream opened",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="STREAM",
                    outcome="success",
                    status_code=response.status_code,
                    target=safe_target
                )
            )
        yield ChunkReader(response.iter_content(chunk_size=Constants.STREAM_CHUNK_SIZE), safe_target)
    finally:
        response.close()
