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

"""Resolve the license texts of every dependency package.

Pipeline per package::

    ┌──────────────────┐  forced texts / urls / strategy
    │ strategy override├──────────────────────────────────┐
    └────────┬─────────┘                                  │
             │ none                                       │
    ┌────────▼─────────┐   ┌─────────────┐   ┌────────────▼──────┐
    │ local-manifest   │──→│ crate-cache │──→│ remote-repository │──→ static-table
    └──────────────────┘   └─────────────┘   └───────────────────┘
         first strategy returning non-empty texts wins; else unresolved

Then, for the whole run:

1. ``copy_licenses`` gives each copier package the texts of the
   package it copies from.
2. Unresolved packages that are not ``ignored`` are logged, and raise
   :class:`~license_retriever.errors.UnresolvedLicensesError` when
   ``fail_on_unresolved`` is set.

Packages are resolved concurrently (bounded by ``Config.concurrency``)
but each result is stored in the slot of its input position, so the
output order always matches the input order.

Usage::

    from license_retriever import Config, PackageRecord, resolve

    resolved = resolve(packages, Config(github_token=token))
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence

import httpx

from license_retriever._types import LicenseResult, LicenseSource, PackageRecord, ResolvedSet
from license_retriever.config import Config
from license_retriever.errors import ConfigError, LicenseRetrieverError, UnresolvedLicensesError
from license_retriever.logging import get_logger
from license_retriever.net import http_client
from license_retriever.sources import STRATEGIES, Strategy, StrategyContext, strategy_for
from license_retriever.sources._remote import fetch_license_url
from license_retriever.sources._static import load_license_table

__all__ = [
    'async_resolve',
    'resolve',
    'resolve_package',
]

log = get_logger('license_retriever.resolver')


async def _attempt(
    source: LicenseSource,
    strategy: Strategy,
    package: PackageRecord,
    ctx: StrategyContext,
) -> list[str]:
    """Run one strategy, treating any unexpected failure as "not found"."""
    try:
        texts = await strategy(package, ctx)
    except LicenseRetrieverError:
        raise
    except Exception as exc:  # noqa: BLE001
        log.warning('strategy_failed', package=str(package), strategy=source.value, error=repr(exc))
        return []
    return [t for t in texts if t and t.strip()]


async def _from_urls(package: PackageRecord, urls: Sequence[str], ctx: StrategyContext) -> LicenseResult:
    fetched = await asyncio.gather(
        *(fetch_license_url(ctx.client, url, max_retries=ctx.config.max_retries) for url in urls),
    )
    texts = tuple(t for t in fetched if t)
    if not texts:
        return LicenseResult(package)
    return LicenseResult(package, texts, LicenseSource.REMOTE_REPOSITORY)


async def resolve_package(package: PackageRecord, ctx: StrategyContext) -> LicenseResult:
    """Resolve one package.

    Args:
        package: The package to resolve.
        ctx: Shared run state.

    Returns:
        The package's :class:`LicenseResult`; unresolved when no
        strategy found any text.
    """
    strategies: Sequence[tuple[LicenseSource, Strategy]] = STRATEGIES
    override = ctx.config.strategy_overrides.get(package.name)
    if override is not None:
        if override.texts:
            log.info('license_overridden', package=str(package), texts=len(override.texts))
            return LicenseResult(package, override.texts, LicenseSource.STATIC_TABLE)
        if override.urls:
            log.info('license_from_override_urls', package=str(package), urls=len(override.urls))
            return await _from_urls(package, override.urls, ctx)
        if override.strategy is not None:
            strategies = ((override.strategy, strategy_for(override.strategy)),)

    for source, strategy in strategies:
        texts = await _attempt(source, strategy, package, ctx)
        if texts:
            log.debug('license_resolved', package=str(package), source=source.value, texts=len(texts))
            return LicenseResult(package, tuple(texts), source)

    log.debug('license_unresolved', package=str(package))
    return LicenseResult(package)


def _apply_copies(results: list[LicenseResult], copies: dict[str, str]) -> list[LicenseResult]:
    """Give every copier package the texts of the package it copies from.

    When the copied package appears in several versions, the version
    with the most texts is used.

    Raises:
        ConfigError: If a copier or copied package is not in the run.
    """
    names = {r.package.name for r in results}
    for copier, copied in copies.items():
        if copied not in names:
            raise ConfigError(f'copy_licenses: package {copied!r} (copied by {copier!r}) not found in package list')
        if copier not in names:
            raise ConfigError(f'copy_licenses: package {copier!r} not found in package list')

    if not copies:
        return results

    best: dict[str, LicenseResult] = {}
    for result in results:
        current = best.get(result.package.name)
        if current is None or len(result.texts) > len(current.texts):
            best[result.package.name] = result

    copied_results: list[LicenseResult] = []
    for result in results:
        copied = copies.get(result.package.name)
        if copied is None:
            copied_results.append(result)
            continue
        source = best[copied]
        log.debug('license_copied', package=str(result.package), copied_from=str(source.package))
        copied_results.append(LicenseResult(result.package, source.texts, source.source))
    return copied_results


def _report_unresolved(results: Iterable[LicenseResult], config: Config) -> None:
    missing = [r.package for r in results if not r.resolved and r.package.name not in config.ignored]
    if not missing:
        return
    log.warning(
        'licenses_not_found',
        count=len(missing),
        packages=', '.join(f'{p.name} {p.version}' for p in missing),
    )
    if config.fail_on_unresolved:
        raise UnresolvedLicensesError(missing)


async def async_resolve(
    packages: Iterable[PackageRecord],
    config: Config | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ResolvedSet:
    """Resolve license texts for *packages*.

    Args:
        packages: Packages in enumerator order.
        config: Run configuration; defaults to :class:`Config` defaults.
        transport: Optional HTTP transport for the shared client.

    Returns:
        One :class:`LicenseResult` per package, in input order.

    Raises:
        ConfigError: If ``copy_licenses`` names an unknown package.
        LicenseDataError: If the static license table is invalid.
        UnresolvedLicensesError: If ``fail_on_unresolved`` is set and a
            non-ignored package stays unresolved.
    """
    config = config or Config()
    records = list(packages)
    load_license_table(config.license_table)
    slots: list[LicenseResult | None] = [None] * len(records)
    sem = asyncio.Semaphore(config.concurrency)
    log.info('resolution_started', packages=len(records), concurrency=config.concurrency)

    async with http_client(pool_size=config.concurrency, timeout=config.timeout, transport=transport) as client:
        ctx = StrategyContext(config=config, client=client)

        async def _do_one(index: int, package: PackageRecord) -> None:
            async with sem:
                slots[index] = await resolve_package(package, ctx)

        await asyncio.gather(*(_do_one(i, p) for i, p in enumerate(records)))

    results = [r for r in slots if r is not None]
    if len(results) != len(records):  # pragma: no cover
        raise RuntimeError('resolution finished with empty result slots')
    results = _apply_copies(results, dict(config.copy_licenses))

    counts: dict[str, int] = {}
    for r in results:
        counts[r.source.value] = counts.get(r.source.value, 0) + 1
    log.info('resolution_finished', **counts)

    _report_unresolved(results, config)
    return ResolvedSet(tuple(results))


def resolve(
    packages: Iterable[PackageRecord],
    config: Config | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ResolvedSet:
    """Synchronous wrapper around :func:`async_resolve`."""
    return asyncio.run(async_resolve(packages, config, transport=transport))
