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

"""The fixed, ordered set of license retrieval strategies.

Each strategy takes a :class:`~license_retriever.PackageRecord` and the
run's :class:`StrategyContext` and returns the license texts it found,
or an empty list for "not found". Strategies never raise for expected
failures.

Priority order::

    1. local-manifest     license files beside the local manifest
    2. crate-cache        license files in the download cache
    3. remote-repository  GitHub license API for the repository URL
    4. static-table       bundled text for the declared SPDX ids
"""

from __future__ import annotations

from typing import Final

from license_retriever._types import LicenseSource
from license_retriever.sources._context import Strategy, StrategyContext
from license_retriever.sources._files import from_crate_cache, from_local_manifest
from license_retriever.sources._remote import from_remote_repository
from license_retriever.sources._static import from_static_table

__all__ = [
    'STRATEGIES',
    'Strategy',
    'StrategyContext',
    'strategy_for',
]

#: Strategies in priority order.
STRATEGIES: Final[tuple[tuple[LicenseSource, Strategy], ...]] = (
    (LicenseSource.LOCAL_MANIFEST, from_local_manifest),
    (LicenseSource.CRATE_CACHE, from_crate_cache),
    (LicenseSource.REMOTE_REPOSITORY, from_remote_repository),
    (LicenseSource.STATIC_TABLE, from_static_table),
)


def strategy_for(source: LicenseSource) -> Strategy:
    """Return the strategy that produces *source*.

    Raises:
        KeyError: If *source* is :attr:`LicenseSource.UNRESOLVED`.
    """
    for candidate, strategy in STRATEGIES:
        if candidate is source:
            return strategy
    raise KeyError(source)
