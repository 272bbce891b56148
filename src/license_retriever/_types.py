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

"""Shared leaf-level types used across license_retriever.

This module must have **zero** imports from other ``license_retriever``
modules to avoid circular-import chains.  It is safe to import from
any module in the project.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

__all__ = [
    'LicenseResult',
    'LicenseSource',
    'PackageRecord',
    'ResolvedSet',
]


class LicenseSource(str, enum.Enum):
    """Where the license texts of a package came from.

    Declaration order is the fixed strategy priority order; the final
    member marks a package no strategy could resolve.
    """

    LOCAL_MANIFEST = 'local-manifest'
    CRATE_CACHE = 'crate-cache'
    REMOTE_REPOSITORY = 'remote-repository'
    STATIC_TABLE = 'static-table'
    UNRESOLVED = 'unresolved'


@dataclass(frozen=True)
class PackageRecord:
    """A dependency package as supplied by the dependency enumerator.

    Attributes:
        name: Package name.
        version: Semantic version string.
        license: Declared SPDX license expression, if any.
        repository: Declared source repository URL, if any.
        local_manifest_dir: Directory holding the package manifest when
            the package lives in the local workspace.
        cache_dir: Version-specific extraction directory of the package
            in the package manager's local cache.
        homepage: Declared homepage URL. Only consulted by the remote
            strategy when ``repository`` is absent.
    """

    name: str
    version: str
    license: str | None = None
    repository: str | None = None
    local_manifest_dir: Path | None = None
    cache_dir: Path | None = None
    homepage: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        """``(name, version)`` pair identifying this package."""
        return (self.name, self.version)

    def __str__(self) -> str:
        """Return ``name@version``."""
        return f'{self.name}@{self.version}'


@dataclass(frozen=True)
class LicenseResult:
    """License texts resolved for one package.

    Attributes:
        package: The package the texts belong to.
        texts: One entry per discovered license file or text, in
            discovery order. Empty only when unresolved.
        source: The strategy that produced the texts.
    """

    package: PackageRecord
    texts: tuple[str, ...] = ()
    source: LicenseSource = LicenseSource.UNRESOLVED

    def __post_init__(self) -> None:
        """Enforce that only unresolved results have no texts."""
        if (self.source is LicenseSource.UNRESOLVED) != (not self.texts):
            raise ValueError(
                f'{self.package}: source {self.source.value!r} is inconsistent with {len(self.texts)} license text(s)'
            )

    @property
    def resolved(self) -> bool:
        """``True`` if at least one license text was found."""
        return self.source is not LicenseSource.UNRESOLVED


@dataclass(frozen=True)
class ResolvedSet(Sequence[LicenseResult]):
    """Ordered license results for one build, one entry per input package."""

    results: tuple[LicenseResult, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        """Return the number of packages."""
        return len(self.results)

    def __getitem__(self, index):  # noqa: ANN001, ANN204
        """Return the result (or a tuple of results for a slice) at *index*."""
        return self.results[index]

    def __iter__(self) -> Iterator[LicenseResult]:
        """Iterate results in input order."""
        return iter(self.results)

    def unresolved(self) -> list[LicenseResult]:
        """Return the results no strategy could resolve."""
        return [r for r in self.results if not r.resolved]
