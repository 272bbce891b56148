# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Async HTTP helpers built on :mod:`httpx`.

Every outbound request goes through :func:`request_with_retry`, which
retries transport errors, ``429`` and ``5xx`` responses with exponential
backoff plus jitter. All other responses, including ``404`` and the
``403`` GitHub returns when the hourly quota is exhausted, are handed
back to the caller unchanged.

Usage::

    from license_retriever.net import http_client, request_with_retry

    async with http_client(timeout=5.0) as client:
        resp = await request_with_retry(client, 'GET', url, max_retries=2)
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Final

import httpx

from license_retriever.logging import get_logger

__all__ = [
    'DEFAULT_POOL_SIZE',
    'DEFAULT_TIMEOUT',
    'MAX_RETRIES',
    'http_client',
    'request_with_retry',
]

log = get_logger('license_retriever.net')

#: Default maximum number of pooled connections.
DEFAULT_POOL_SIZE: Final[int] = 10

#: Default per-request timeout in seconds.
DEFAULT_TIMEOUT: Final[float] = 10.0

#: Default number of retries after the first attempt.
MAX_RETRIES: Final[int] = 2

#: Base delay in seconds for exponential backoff.
BACKOFF_BASE: Final[float] = 0.5

#: Upper bound on any single backoff delay, including ``Retry-After``.
MAX_BACKOFF: Final[float] = 10.0

_RETRYABLE_STATUS: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})

_USER_AGENT: Final[str] = 'license-retriever'


@asynccontextmanager
async def http_client(
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    headers: Mapping[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a configured :class:`httpx.AsyncClient`.

    Args:
        pool_size: Maximum number of concurrent connections.
        timeout: Per-request timeout in seconds (connect, read, write
            and pool acquisition).
        headers: Default headers sent with every request.
        transport: Optional transport, used by tests to inject
            :class:`httpx.MockTransport`.
    """
    merged = {'User-Agent': _USER_AGENT}
    if headers:
        merged.update(headers)
    async with httpx.AsyncClient(
        headers=merged,
        timeout=httpx.Timeout(timeout),
        limits=httpx.Limits(max_connections=pool_size),
        follow_redirects=True,
        transport=transport,
    ) as client:
        yield client


def _backoff_delay(attempt: int, response: httpx.Response | None, base: float) -> float:
    """Compute the delay before retry number *attempt* (0-based)."""
    if response is not None:
        retry_after = response.headers.get('Retry-After', '')
        if retry_after.isdigit():
            return min(float(retry_after), MAX_BACKOFF)
    delay = base * (2**attempt)
    return min(delay + random.uniform(0, delay), MAX_BACKOFF)  # noqa: S311


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    backoff_base: float = BACKOFF_BASE,
    headers: Mapping[str, str] | None = None,
) -> httpx.Response:
    """Send a request, retrying transient failures.

    Args:
        client: The client to send through.
        method: HTTP method.
        url: Absolute URL.
        max_retries: Retries after the first attempt.
        backoff_base: Base delay in seconds for exponential backoff.
        headers: Extra per-request headers.

    Returns:
        The final response. Non-retryable statuses are returned as-is;
        a retryable status is returned once retries are exhausted.

    Raises:
        httpx.HTTPError: The last transport error, once retries are
            exhausted.
    """
    attempt = 0
    while True:
        try:
            resp = await client.request(method, url, headers=headers)
        except httpx.TransportError as exc:
            if attempt >= max_retries:
                raise
            delay = _backoff_delay(attempt, None, backoff_base)
            log.debug('http_retry', url=url, error=type(exc).__name__, attempt=attempt + 1, delay=delay)
        else:
            if resp.status_code not in _RETRYABLE_STATUS or attempt >= max_retries:
                return resp
            delay = _backoff_delay(attempt, resp, backoff_base)
            log.debug('http_retry', url=url, status=resp.status_code, attempt=attempt + 1, delay=delay)
        attempt += 1
        await asyncio.sleep(delay)
