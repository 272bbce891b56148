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

"""Read-only access to a persisted license artifact at process start.

A consuming program ships the artifact produced by
``license-retriever resolve`` and reads it once::

    from license_retriever.embed import bundled_licenses

    for (name, version), texts in bundled_licenses().items():
        ...

The artifact path comes from the argument, else the
``LICENSE_RETRIEVER_BUNDLE`` environment variable, else
``LICENSE-3RD-PARTY`` in the working directory. Artifacts shipped as
package data are read with :func:`load_bundle_resource`.
"""

from __future__ import annotations

import importlib.resources as _resources
import os
import threading
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Final

from license_retriever._types import LicenseSource, PackageRecord, ResolvedSet
from license_retriever.config import DEFAULT_OUTPUT
from license_retriever.errors import ArtifactNotFoundError
from license_retriever.logging import get_logger
from license_retriever.store import load, loads

__all__ = [
    'BUNDLE_ENV_VAR',
    'LicenseBundle',
    'bundled_licenses',
    'load_bundle',
    'load_bundle_resource',
]

log = get_logger('license_retriever.embed')

BUNDLE_ENV_VAR: Final[str] = 'LICENSE_RETRIEVER_BUNDLE'


class LicenseBundle(Mapping[tuple[str, str], tuple[str, ...]]):
    """Immutable ``(name, version)`` → license texts mapping.

    Unresolved packages are present with an empty tuple, so
    ``len(bundle)`` is the number of packages in the artifact.
    """

    def __init__(self, resolved: ResolvedSet) -> None:
        self._texts: dict[tuple[str, str], tuple[str, ...]] = {}
        self._records: dict[tuple[str, str], PackageRecord] = {}
        self._sources: dict[tuple[str, str], LicenseSource] = {}
        for result in resolved:
            key = result.package.key
            self._texts[key] = result.texts
            self._records[key] = result.package
            self._sources[key] = result.source

    def __getitem__(self, key: tuple[str, str]) -> tuple[str, ...]:
        return self._texts[key]

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._texts)

    def __len__(self) -> int:
        return len(self._texts)

    def __repr__(self) -> str:
        return f'LicenseBundle({len(self)} packages)'

    @property
    def sources(self) -> Mapping[tuple[str, str], LicenseSource]:
        """Which strategy produced each package's texts."""
        return dict(self._sources)

    def packages(self) -> list[PackageRecord]:
        """Package records in artifact order."""
        return list(self._records.values())

    def texts_for(self, name: str, version: str | None = None) -> tuple[str, ...]:
        """Return the texts for *name*.

        Without *version*, texts of every version of *name* are
        returned, deduplicated, in artifact order. Unknown packages
        yield an empty tuple.
        """
        if version is not None:
            return self._texts.get((name, version), ())
        seen: dict[str, None] = {}
        for (pkg_name, _), texts in self._texts.items():
            if pkg_name == name:
                seen.update(dict.fromkeys(texts))
        return tuple(seen)


def load_bundle(path: Path | str) -> LicenseBundle:
    """Load the artifact at *path* as a :class:`LicenseBundle`.

    Raises:
        StoreError: If the artifact is missing, corrupt or incompatible.
    """
    return LicenseBundle(load(path))


def load_bundle_resource(package: str, resource: str = DEFAULT_OUTPUT) -> LicenseBundle:
    """Load an artifact shipped as package data of *package*.

    Raises:
        ArtifactNotFoundError: If the resource does not exist.
        StoreError: If the artifact is corrupt or incompatible.
    """
    location = f'{package}/{resource}'
    try:
        content = _resources.files(package).joinpath(resource).read_text(encoding='utf-8')
    except (FileNotFoundError, ModuleNotFoundError, TypeError) as exc:
        raise ArtifactNotFoundError(Path(location), 'bundled artifact not found') from exc
    return LicenseBundle(loads(content, path=location))


_bundle: LicenseBundle | None = None
_bundle_lock = threading.Lock()


def bundled_licenses(path: Path | str | None = None) -> LicenseBundle:
    """Return the process-wide bundle, loading it on first call.

    Later calls return the same instance regardless of *path*.
    """
    global _bundle  # noqa: PLW0603
    with _bundle_lock:
        if _bundle is None:
            source = Path(path or os.environ.get(BUNDLE_ENV_VAR) or DEFAULT_OUTPUT)
            _bundle = load_bundle(source)
            log.debug('license_bundle_loaded', path=str(source), packages=len(_bundle))
        return _bundle


def _reset_bundle() -> None:
    """Forget the cached bundle. For tests."""
    global _bundle  # noqa: PLW0603
    with _bundle_lock:
        _bundle = None
