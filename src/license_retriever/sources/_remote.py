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

"""Fetch license text from a package's GitHub repository.

Data Flow::

    ┌──────────────────┐     ┌───────────────────────┐     ┌──────────────┐
    │ repository URL   │────→│ owner/repo            │────→│ GET /repos/  │
    │ (or homepage)    │     │ (normalized)          │     │ o/r/license  │
    └──────────────────┘     └───────────────────────┘     └──────┬───────┘
                                                                  │ base64
                                                           ┌──────▼───────┐
                                                           │ LICENSE text │
                                                           └──────────────┘

The license endpoint reports the license GitHub detected at the
repository root, so a URL pointing into a monorepo subdirectory
resolves to the root license.

Every failure (unrecognized URL, 404, rate limiting, 5xx, timeout,
transport error, malformed payload) yields an empty result so the
orchestrator moves on to the next strategy.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Final

import httpx

from license_retriever._types import PackageRecord
from license_retriever.logging import get_logger
from license_retriever.net import request_with_retry
from license_retriever.sources._context import StrategyContext

__all__ = [
    'fetch_license_url',
    'fetch_repository_license',
    'from_remote_repository',
    'parse_github_repo',
]

log = get_logger('license_retriever.sources.remote')

# Matches the host-and-path part shared by every accepted URL form:
# https://github.com/o/r, git+https://www.github.com/o/r.git,
# git://github.com/o/r, ssh://git@github.com/o/r, git@github.com:o/r.git
_GITHUB_REPO_RE: Final[re.Pattern[str]] = re.compile(
    r"""
    ^(?:
        (?:git\+)?(?:https?|git|ssh)://(?:[^@/]+@)?(?:www\.)?github\.com[:/]
      | git@github\.com:
    )
    (?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)
    /
    (?P<repo>[A-Za-z0-9._-]+?)
    (?:\.git)?
    (?:[/?#].*)?$
    """,
    re.VERBOSE | re.IGNORECASE,
)

_GITHUB_ACCEPT: Final[str] = 'application/vnd.github+json'
_GITHUB_API_VERSION: Final[str] = '2022-11-28'


def parse_github_repo(url: str | None) -> tuple[str, str] | None:
    """Normalize a repository URL to an ``(owner, repo)`` pair.

    Returns:
        The pair, or ``None`` if *url* is not a recognized GitHub
        repository URL.
    """
    if not url:
        return None
    match = _GITHUB_REPO_RE.match(url.strip())
    if match is None:
        return None
    repo = match.group('repo')
    if repo in {'.', '..'}:
        return None
    return match.group('owner'), repo


def _repository_candidates(package: PackageRecord) -> list[str]:
    """Declared repository first, then the homepage heuristic."""
    return [url for url in (package.repository, package.homepage) if url]


async def fetch_repository_license(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    *,
    api_base_url: str = 'https://api.github.com',
    token: str | None = None,
    max_retries: int = 2,
) -> str:
    """Fetch the license GitHub detected for ``owner/repo``.

    Returns:
        The decoded license text, or an empty string on any failure.
    """
    url = f'{api_base_url.rstrip("/")}/repos/{owner}/{repo}/license'
    headers = {'Accept': _GITHUB_ACCEPT, 'X-GitHub-Api-Version': _GITHUB_API_VERSION}
    if token:
        headers['Authorization'] = f'Bearer {token}'
    try:
        resp = await request_with_retry(client, 'GET', url, max_retries=max_retries, headers=headers)
    except httpx.TimeoutException:
        log.warning('repository_license_timeout', repo=f'{owner}/{repo}')
        return ''
    except httpx.HTTPError as exc:
        log.warning('repository_license_unreachable', repo=f'{owner}/{repo}', error=type(exc).__name__)
        return ''

    if resp.status_code == 404:
        log.debug('repository_license_not_found', repo=f'{owner}/{repo}')
        return ''
    if resp.status_code == 429 or (resp.status_code == 403 and resp.headers.get('X-RateLimit-Remaining') == '0'):
        log.warning(
            'repository_license_rate_limited',
            repo=f'{owner}/{repo}',
            status=resp.status_code,
            reset=resp.headers.get('X-RateLimit-Reset', ''),
            authenticated=bool(token),
        )
        return ''
    if resp.status_code != 200:
        log.warning('repository_license_http_error', repo=f'{owner}/{repo}', status=resp.status_code)
        return ''

    try:
        data = resp.json()
        content = data['content']
        if data.get('encoding', 'base64') != 'base64' or not isinstance(content, str):
            raise ValueError('unsupported encoding')
        text = base64.b64decode(content).decode('utf-8', errors='replace')
    except (ValueError, KeyError, TypeError, binascii.Error):
        log.warning('repository_license_malformed', repo=f'{owner}/{repo}')
        return ''
    return text if text.strip() else ''


async def fetch_license_url(
    client: httpx.AsyncClient,
    url: str,
    *,
    max_retries: int = 2,
) -> str:
    """Download a raw license file.

    Returns:
        The response body, or an empty string on any failure.
    """
    try:
        resp = await request_with_retry(client, 'GET', url, max_retries=max_retries)
    except httpx.HTTPError as exc:
        log.warning('license_url_unreachable', url=url, error=type(exc).__name__)
        return ''
    if resp.status_code != 200:
        log.warning('license_url_http_error', url=url, status=resp.status_code)
        return ''
    return resp.text if resp.text.strip() else ''


async def from_remote_repository(package: PackageRecord, ctx: StrategyContext) -> list[str]:
    """License detected by the hosting API for the package's repository."""
    for url in _repository_candidates(package):
        parsed = parse_github_repo(url)
        if parsed is None:
            log.debug('repository_url_unrecognized', package=str(package), url=url)
            continue
        owner, repo = parsed
        text = await fetch_repository_license(
            ctx.client,
            owner,
            repo,
            api_base_url=ctx.config.api_base_url,
            token=ctx.config.github_token,
            max_retries=ctx.config.max_retries,
        )
        return [text] if text else []
    return []
