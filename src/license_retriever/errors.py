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

"""Exception hierarchy for license_retriever.

Only configuration, artifact-store and (opt-in) unresolved-license
failures surface as exceptions. Strategy-level failures never do: a
missing file, a 404 or an unknown SPDX id just means "not found".

Hierarchy::

    LicenseRetrieverError
    ├── ConfigError
    ├── LicenseDataError
    ├── UnresolvedLicensesError
    └── StoreError
        ├── PersistError
        ├── ArtifactNotFoundError
        ├── CorruptArtifactError
        └── SchemaMismatchError
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from license_retriever._types import PackageRecord

__all__ = [
    'ArtifactNotFoundError',
    'ConfigError',
    'CorruptArtifactError',
    'LicenseDataError',
    'LicenseRetrieverError',
    'PersistError',
    'SchemaMismatchError',
    'StoreError',
    'UnresolvedLicensesError',
]


class LicenseRetrieverError(Exception):
    """Base class for every error raised by license_retriever.

    Attributes:
        hint: Optional actionable fix instruction.
    """

    def __init__(self, message: str, *, hint: str = '') -> None:
        self.hint = hint
        super().__init__(message)


class ConfigError(LicenseRetrieverError):
    """Raised when configuration is malformed."""


class LicenseDataError(LicenseRetrieverError):
    """Raised when static license table data fails validation.

    Attributes:
        errors: List of human-readable error strings.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        bullet_list = '\n'.join(f'  - {e}' for e in errors)
        super().__init__(f'License table has {len(errors)} validation error(s):\n{bullet_list}')


class UnresolvedLicensesError(LicenseRetrieverError):
    """Raised when packages stay unresolved and the run is configured to fail.

    Attributes:
        packages: The unresolved, non-ignored packages.
    """

    def __init__(self, packages: Sequence[PackageRecord]) -> None:
        self.packages = tuple(packages)
        names = ', '.join(f'{p.name} {p.version}' for p in self.packages)
        super().__init__(
            f'No licenses found for: {names}',
            hint='Add a strategy override or list the package under "ignored".',
        )


class StoreError(LicenseRetrieverError):
    """Base class for artifact persistence and loading failures.

    Attributes:
        path: The artifact path involved.
    """

    def __init__(self, path: Path, message: str, *, hint: str = '') -> None:
        self.path = path
        super().__init__(f'{path}: {message}', hint=hint)


class PersistError(StoreError):
    """Raised when the artifact cannot be written."""


class ArtifactNotFoundError(StoreError):
    """Raised when the artifact does not exist."""


class CorruptArtifactError(StoreError):
    """Raised when the artifact cannot be decoded or has an invalid shape."""


class SchemaMismatchError(StoreError):
    """Raised when the artifact's schema is not readable by this version.

    Attributes:
        found: The schema tag or version found in the artifact.
        expected: The schema tag or version this reader supports.
    """

    def __init__(self, path: Path, found: str, expected: str) -> None:
        self.found = found
        self.expected = expected
        super().__init__(
            path,
            f'unsupported schema {found!r}, expected {expected!r}',
            hint='Regenerate the artifact with a compatible license-retriever version.',
        )
