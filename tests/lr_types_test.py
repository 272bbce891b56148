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

"""Tests for license_retriever._types."""

from __future__ import annotations

from pathlib import Path

import pytest
from license_retriever._types import LicenseResult, LicenseSource, PackageRecord, ResolvedSet

_PKG = PackageRecord(name='foo', version='1.0.0', license='MIT')


class TestLicenseSource:
    """Tests for LicenseSource."""

    def test_values(self) -> None:
        """Test values."""
        assert [s.value for s in LicenseSource] == [
            'local-manifest',
            'crate-cache',
            'remote-repository',
            'static-table',
            'unresolved',
        ]

    def test_is_str(self) -> None:
        """Members compare equal to their string values."""
        assert LicenseSource.STATIC_TABLE == 'static-table'
        assert LicenseSource('crate-cache') is LicenseSource.CRATE_CACHE


class TestPackageRecord:
    """Tests for PackageRecord."""

    def test_defaults(self) -> None:
        """Test defaults."""
        pkg = PackageRecord(name='foo', version='1.0.0')
        assert pkg.license is None
        assert pkg.repository is None
        assert pkg.local_manifest_dir is None
        assert pkg.cache_dir is None
        assert pkg.homepage is None

    def test_key(self) -> None:
        """Test key."""
        assert _PKG.key == ('foo', '1.0.0')

    def test_str(self) -> None:
        """Test str."""
        assert str(_PKG) == 'foo@1.0.0'

    def test_frozen(self) -> None:
        """Test frozen."""
        with pytest.raises(AttributeError):
            _PKG.name = 'bar'  # type: ignore[misc]

    def test_equality(self) -> None:
        """Records with equal fields are equal."""
        a = PackageRecord(name='foo', version='1.0.0', cache_dir=Path('/c'))
        b = PackageRecord(name='foo', version='1.0.0', cache_dir=Path('/c'))
        assert a == b
        assert hash(a) == hash(b)


class TestLicenseResult:
    """Tests for LicenseResult."""

    def test_unresolved_default(self) -> None:
        """A bare result is unresolved with no texts."""
        result = LicenseResult(_PKG)
        assert result.texts == ()
        assert result.source is LicenseSource.UNRESOLVED
        assert result.resolved is False

    def test_resolved(self) -> None:
        """Test resolved."""
        result = LicenseResult(_PKG, ('MIT text',), LicenseSource.LOCAL_MANIFEST)
        assert result.resolved is True

    def test_texts_without_source_rejected(self) -> None:
        """Texts with an unresolved source are rejected."""
        with pytest.raises(ValueError, match='inconsistent'):
            LicenseResult(_PKG, ('MIT text',), LicenseSource.UNRESOLVED)

    def test_source_without_texts_rejected(self) -> None:
        """A resolved source with no texts is rejected."""
        with pytest.raises(ValueError, match='inconsistent'):
            LicenseResult(_PKG, (), LicenseSource.STATIC_TABLE)


class TestResolvedSet:
    """Tests for ResolvedSet."""

    def _make(self) -> ResolvedSet:
        return ResolvedSet((
            LicenseResult(_PKG, ('a',), LicenseSource.CRATE_CACHE),
            LicenseResult(PackageRecord(name='bar', version='2.0.0')),
        ))

    def test_sequence_protocol(self) -> None:
        """Test sequence protocol."""
        resolved = self._make()
        assert len(resolved) == 2
        assert resolved[0].package.name == 'foo'
        assert [r.package.name for r in resolved] == ['foo', 'bar']

    def test_unresolved(self) -> None:
        """Test unresolved."""
        unresolved = self._make().unresolved()
        assert [r.package.name for r in unresolved] == ['bar']

    def test_value_equality(self) -> None:
        """Test value equality."""
        assert self._make() == self._make()

    def test_empty(self) -> None:
        """Test empty."""
        assert len(ResolvedSet()) == 0
        assert ResolvedSet().unresolved() == []
