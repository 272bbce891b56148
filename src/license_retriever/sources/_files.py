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

r"""Read license files from a package directory on disk.

Backs two strategies that differ only in which directory they scan:

- **Local manifest**: ``PackageRecord.local_manifest_dir``, the
  directory of a workspace or path dependency.
- **Crate cache**: ``PackageRecord.cache_dir``, the version-specific
  extraction directory in the package manager's download cache.

Matching is non-recursive and case-insensitive. Accepted names::

    LICENSE  LICENCE  LICENSE.txt  LICENSE.md  LICENSE-MIT
    LICENSE-APACHE  LICENSE_APACHE.txt  license-mit.md
    COPYING  COPYING.txt  UNLICENSE

Every match is returned, in sorted file-name order, so a dual-licensed
package yields one text per file.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Final

from license_retriever._types import PackageRecord
from license_retriever.logging import get_logger
from license_retriever.sources._context import StrategyContext

__all__ = [
    'LICENSE_FILE_RE',
    'find_license_files',
    'from_crate_cache',
    'from_local_manifest',
    'read_license_texts',
]

log = get_logger('license_retriever.sources.files')

#: File names treated as license files.
LICENSE_FILE_RE: Final[re.Pattern[str]] = re.compile(
    r'^(?:licen[cs]e(?:[-_.].+)?|copying(?:\..+)?|unlicense(?:\..+)?)$',
    re.IGNORECASE,
)


def find_license_files(directory: Path | None) -> list[Path]:
    """List license files directly inside *directory*.

    Returns:
        Matching regular files sorted by name. Empty if *directory* is
        ``None``, missing or unreadable.
    """
    if directory is None or not directory.is_dir():
        return []
    try:
        entries = list(directory.iterdir())
    except OSError as exc:
        log.debug('license_dir_unreadable', path=str(directory), error=str(exc))
        return []
    return sorted(
        (p for p in entries if LICENSE_FILE_RE.match(p.name) and p.is_file()),
        key=lambda p: p.name,
    )


def read_license_texts(directory: Path | None) -> list[str]:
    """Read every license file directly inside *directory*.

    Unreadable and whitespace-only files are skipped.
    """
    texts: list[str] = []
    for path in find_license_files(directory):
        try:
            text = path.read_text(encoding='utf-8', errors='replace')
        except OSError as exc:
            log.debug('license_file_unreadable', path=str(path), error=str(exc))
            continue
        if text.strip():
            texts.append(text)
    return texts


async def from_local_manifest(package: PackageRecord, ctx: StrategyContext) -> list[str]:
    """License files next to the package's local manifest."""
    return await asyncio.to_thread(read_license_texts, package.local_manifest_dir)


async def from_crate_cache(package: PackageRecord, ctx: StrategyContext) -> list[str]:
    """License files in the package's download-cache directory."""
    return await asyncio.to_thread(read_license_texts, package.cache_dir)
