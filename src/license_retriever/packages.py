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

"""Read :class:`~license_retriever.PackageRecord` lists from JSON.

Two input shapes are accepted.

A plain list of records (relative paths resolve against the file's
directory)::

    [
      {"name": "foo", "version": "1.0.0", "license": "MIT",
       "repository": "https://github.com/acme/foo",
       "local_manifest_dir": "crates/foo"}
    ]

The output of ``cargo metadata --format-version 1``. Packages without a
``source`` live in the workspace, so their manifest directory is the
local manifest directory; every other package was unpacked into the
cargo cache, so its manifest directory is the cache directory.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from license_retriever._types import PackageRecord
from license_retriever.errors import ConfigError
from license_retriever.logging import get_logger

__all__ = [
    'load_package_records',
    'parse_package_records',
]

log = get_logger('license_retriever.packages')

_RECORD_KEYS = frozenset({
    'name',
    'version',
    'license',
    'repository',
    'homepage',
    'local_manifest_dir',
    'cache_dir',
})


def _opt_str(where: str, entry: Mapping[str, Any], key: str) -> str | None:
    value = entry.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f'{where}.{key} must be a string')
    return value or None


def _req_str(where: str, entry: Mapping[str, Any], key: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigError(f'{where}.{key} must be a non-empty string')
    return value


def _from_record(index: int, entry: object, base_dir: Path) -> PackageRecord:
    where = f'packages[{index}]'
    if not isinstance(entry, dict):
        raise ConfigError(f'{where} must be an object')
    unknown = sorted(set(entry) - _RECORD_KEYS)
    if unknown:
        raise ConfigError(f'Unknown key(s) in {where}: {", ".join(unknown)}')

    dirs: dict[str, Path | None] = {}
    for key in ('local_manifest_dir', 'cache_dir'):
        value = _opt_str(where, entry, key)
        dirs[key] = base_dir / value if value is not None else None

    return PackageRecord(
        name=_req_str(where, entry, 'name'),
        version=_req_str(where, entry, 'version'),
        license=_opt_str(where, entry, 'license'),
        repository=_opt_str(where, entry, 'repository'),
        homepage=_opt_str(where, entry, 'homepage'),
        **dirs,
    )


def _from_cargo_package(index: int, entry: object) -> PackageRecord:
    where = f'packages[{index}]'
    if not isinstance(entry, dict):
        raise ConfigError(f'{where} must be an object')
    manifest = _req_str(where, entry, 'manifest_path')
    package_dir = Path(manifest).parent
    local = entry.get('source') is None
    return PackageRecord(
        name=_req_str(where, entry, 'name'),
        version=_req_str(where, entry, 'version'),
        license=_opt_str(where, entry, 'license'),
        repository=_opt_str(where, entry, 'repository'),
        homepage=_opt_str(where, entry, 'homepage'),
        local_manifest_dir=package_dir if local else None,
        cache_dir=None if local else package_dir,
    )


def parse_package_records(data: Any, *, base_dir: Path | None = None) -> list[PackageRecord]:  # noqa: ANN401
    """Build package records from decoded JSON *data*.

    Args:
        data: A list of records, or a ``cargo metadata`` document.
        base_dir: Directory relative record paths resolve against.

    Raises:
        ConfigError: If *data* has neither shape or a record is invalid.
    """
    base = base_dir or Path.cwd()
    if isinstance(data, list):
        return [_from_record(i, entry, base) for i, entry in enumerate(data)]
    if isinstance(data, dict) and isinstance(data.get('packages'), list):
        return [_from_cargo_package(i, entry) for i, entry in enumerate(data['packages'])]
    raise ConfigError(
        'Package list must be a JSON list of records or cargo metadata output',
        hint="Generate one with 'cargo metadata --format-version 1 > packages.json'.",
    )


def load_package_records(path: Path) -> list[PackageRecord]:
    """Load package records from the JSON file at *path*.

    Raises:
        ConfigError: If the file is unreadable, not JSON or malformed.
    """
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f'Cannot read package list {path}: {exc}') from exc
    records = parse_package_records(data, base_dir=path.parent)
    log.debug('package_records_loaded', path=str(path), packages=len(records))
    return records
