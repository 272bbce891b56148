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

"""Resolve, persist and embed the license texts of third-party dependencies.

Build side::

    from license_retriever import Config, load_package_records, persist, resolve

    resolved = resolve(load_package_records(Path('packages.json')), Config())
    persist(resolved, 'LICENSE-3RD-PARTY')

Consumer side::

    from license_retriever.embed import bundled_licenses

    texts = bundled_licenses().texts_for('serde')
"""

from license_retriever._types import LicenseResult, LicenseSource, PackageRecord, ResolvedSet
from license_retriever.config import Config, StrategyOverride, load_config, parse_config
from license_retriever.embed import LicenseBundle, bundled_licenses, load_bundle, load_bundle_resource
from license_retriever.errors import (
    ArtifactNotFoundError,
    ConfigError,
    CorruptArtifactError,
    LicenseDataError,
    LicenseRetrieverError,
    PersistError,
    SchemaMismatchError,
    StoreError,
    UnresolvedLicensesError,
)
from license_retriever.packages import load_package_records
from license_retriever.resolver import async_resolve, resolve
from license_retriever.store import load, persist, render_notice

__version__ = '0.1.0'

__all__ = [
    'ArtifactNotFoundError',
    'Config',
    'ConfigError',
    'CorruptArtifactError',
    'LicenseBundle',
    'LicenseDataError',
    'LicenseResult',
    'LicenseRetrieverError',
    'LicenseSource',
    'PackageRecord',
    'PersistError',
    'ResolvedSet',
    'SchemaMismatchError',
    'StoreError',
    'StrategyOverride',
    'UnresolvedLicensesError',
    '__version__',
    'async_resolve',
    'bundled_licenses',
    'load',
    'load_bundle',
    'load_bundle_resource',
    'load_config',
    'load_package_records',
    'parse_config',
    'persist',
    'render_notice',
    'resolve',
]
