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

"""Tests for license_retriever.store."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from license_retriever._types import LicenseResult, LicenseSource, PackageRecord, ResolvedSet
from license_retriever.errors import (
    ArtifactNotFoundError,
    CorruptArtifactError,
    PersistError,
    SchemaMismatchError,
)
from license_retriever.store import SCHEMA, SCHEMA_VERSION, dumps, load, loads, persist, render_notice

_MIT = 'MIT License\n\nPermission is hereby granted, "free of charge".\n'


def _resolved() -> ResolvedSet:
    return ResolvedSet((
        LicenseResult(
            PackageRecord(name='foo', version='1.0.0', license='MIT', repository='https://github.com/acme/foo'),
            (_MIT,),
            LicenseSource.LOCAL_MANIFEST,
        ),
        LicenseResult(
            PackageRecord(name='bar', version='2.1.0', license='MIT OR Apache-2.0', homepage='https://bar.dev'),
            ('MIT text', 'Apache text with \\ backslash'),
            LicenseSource.STATIC_TABLE,
        ),
        LicenseResult(PackageRecord(name='lost', version='0.0.1')),
    ))


class TestPersistLoad:
    """Tests for persist() and load()."""

    @pytest.mark.parametrize('output_format', ['json', 'toml'])
    def test_round_trip(self, tmp_path: Path, output_format: str) -> None:
        """Test round trip."""
        dest = tmp_path / 'LICENSE-3RD-PARTY'
        resolved = _resolved()
        assert persist(resolved, dest, output_format=output_format) == dest
        assert load(dest) == resolved

    @pytest.mark.parametrize('output_format', ['json', 'toml'])
    def test_paths_round_trip(self, tmp_path: Path, output_format: str) -> None:
        """Package directories are restored as paths."""
        resolved = ResolvedSet((
            LicenseResult(
                PackageRecord(name='foo', version='1.0.0', local_manifest_dir=tmp_path / 'foo'),
                ('T',),
                LicenseSource.LOCAL_MANIFEST,
            ),
            LicenseResult(
                PackageRecord(name='bar', version='2.0.0', cache_dir=tmp_path / 'registry' / 'bar-2.0.0'),
                ('T',),
                LicenseSource.CRATE_CACHE,
            ),
        ))
        dest = tmp_path / 'out'
        persist(resolved, dest, output_format=output_format)
        loaded = load(dest)
        assert loaded == resolved
        assert loaded[0].package.local_manifest_dir == tmp_path / 'foo'
        assert loaded[0].package.cache_dir is None
        assert isinstance(loaded[1].package.cache_dir, Path)

    @pytest.mark.parametrize(
        'text',
        [
            'crlf\r\nline\r\n',
            'lone\rreturn',
            '\nleading newline\n',
            "has ''' and \"\"\" quotes\n",
            'ends with a quote"',
            'tab\tand \\ backslash\n\n',
        ],
    )
    def test_toml_texts_byte_exact(self, tmp_path: Path, text: str) -> None:
        """TOML artifacts keep every text exactly as resolved."""
        resolved = ResolvedSet((
            LicenseResult(PackageRecord(name='foo', version='1.0.0'), (text,), LicenseSource.REMOTE_REPOSITORY),
        ))
        dest = tmp_path / 'out.toml'
        persist(resolved, dest, output_format='toml')
        loaded = load(dest)
        assert loaded[0].texts == (text,)
        assert loaded == resolved

    def test_json_document_shape(self) -> None:
        """Test json document shape."""
        doc = json.loads(dumps(_resolved()))
        assert doc['schema'] == SCHEMA
        assert doc['schema_version'] == SCHEMA_VERSION
        assert doc['packages'][0] == {
            'name': 'foo',
            'version': '1.0.0',
            'license': 'MIT',
            'repository': 'https://github.com/acme/foo',
            'homepage': None,
            'local_manifest_dir': None,
            'cache_dir': None,
            'source': 'local-manifest',
            'texts': [_MIT],
        }
        assert doc['packages'][2]['source'] == 'unresolved'
        assert doc['packages'][2]['texts'] == []

    def test_overwrites(self, tmp_path: Path) -> None:
        """Each persist fully replaces the previous artifact."""
        dest = tmp_path / 'out.json'
        persist(_resolved(), dest)
        persist(ResolvedSet(), dest)
        assert len(load(dest)) == 0

    def test_creates_parent(self, tmp_path: Path) -> None:
        """Test creates parent."""
        dest = tmp_path / 'a' / 'b' / 'out.json'
        persist(_resolved(), dest)
        assert dest.is_file()

    def test_unknown_format(self, tmp_path: Path) -> None:
        """Test unknown format."""
        with pytest.raises(ValueError, match='Unsupported output format'):
            persist(_resolved(), tmp_path / 'x', output_format='yaml')

    def test_atomic_failure_leaves_destination(self, tmp_path: Path) -> None:
        """A failed write leaves the old artifact and no temporary file."""
        dest = tmp_path / 'out.json'
        persist(_resolved(), dest)
        before = dest.read_bytes()
        with patch('license_retriever.store.os.replace', side_effect=OSError('disk full')):
            with pytest.raises(PersistError, match='disk full'):
                persist(ResolvedSet(), dest)
        assert dest.read_bytes() == before
        assert sorted(p.name for p in tmp_path.iterdir()) == ['out.json']

    def test_unwritable_parent(self, tmp_path: Path) -> None:
        """Test unwritable parent."""
        blocker = tmp_path / 'file'
        blocker.write_text('x', encoding='utf-8')
        with pytest.raises(PersistError):
            persist(_resolved(), blocker / 'out.json')


class TestLoadErrors:
    """Tests for load() failure modes."""

    def test_missing(self, tmp_path: Path) -> None:
        """Test missing."""
        with pytest.raises(ArtifactNotFoundError) as exc_info:
            load(tmp_path / 'nope')
        assert exc_info.value.hint

    def test_corrupt_json(self, tmp_path: Path) -> None:
        """Test corrupt json."""
        path = tmp_path / 'a.json'
        path.write_text('{"schema": ', encoding='utf-8')
        with pytest.raises(CorruptArtifactError):
            load(path)

    def test_corrupt_toml(self, tmp_path: Path) -> None:
        """Test corrupt toml."""
        path = tmp_path / 'a.toml'
        path.write_text('schema = ', encoding='utf-8')
        with pytest.raises(CorruptArtifactError):
            load(path)

    def test_not_a_table(self) -> None:
        """Test not a table."""
        with pytest.raises(CorruptArtifactError):
            loads('[1, 2]')

    def test_wrong_schema_tag(self) -> None:
        """Test wrong schema tag."""
        doc = {'schema': 'something-else', 'schema_version': '1.0', 'packages': []}
        with pytest.raises(SchemaMismatchError) as exc_info:
            loads(json.dumps(doc))
        assert exc_info.value.found == 'something-else'

    def test_major_mismatch(self) -> None:
        """Test major mismatch."""
        doc = {'schema': SCHEMA, 'schema_version': '2.0', 'packages': []}
        with pytest.raises(SchemaMismatchError, match="'2.0'"):
            loads(json.dumps(doc))

    def test_newer_minor_accepted(self) -> None:
        """A newer minor version with unknown fields still loads."""
        doc = {
            'schema': SCHEMA,
            'schema_version': '1.7',
            'generator': 'future',
            'packages': [
                {
                    'name': 'foo',
                    'version': '1.0.0',
                    'source': 'crate-cache',
                    'texts': ['T'],
                    'sha256': 'abc',
                },
            ],
        }
        resolved = loads(json.dumps(doc))
        assert resolved[0].texts == ('T',)
        assert resolved[0].package.license is None

    def test_unknown_source(self) -> None:
        """Test unknown source."""
        doc = {
            'schema': SCHEMA,
            'schema_version': '1.0',
            'packages': [{'name': 'a', 'version': '1', 'source': 'magic', 'texts': ['T']}],
        }
        with pytest.raises(CorruptArtifactError, match='unknown source'):
            loads(json.dumps(doc))

    def test_inconsistent_result(self) -> None:
        """Test inconsistent result."""
        doc = {
            'schema': SCHEMA,
            'schema_version': '1.0',
            'packages': [{'name': 'a', 'version': '1', 'source': 'static-table', 'texts': []}],
        }
        with pytest.raises(CorruptArtifactError):
            loads(json.dumps(doc))

    def test_bad_texts(self) -> None:
        """Test bad texts."""
        doc = {
            'schema': SCHEMA,
            'schema_version': '1.0',
            'packages': [{'name': 'a', 'version': '1', 'source': 'static-table', 'texts': [1]}],
        }
        with pytest.raises(CorruptArtifactError, match='texts'):
            loads(json.dumps(doc))

    def test_format_sniffed_from_content(self, tmp_path: Path) -> None:
        """A TOML artifact loads regardless of its file name."""
        path = tmp_path / 'artifact.json'
        persist(_resolved(), path, output_format='toml')
        assert not path.read_text(encoding='utf-8').lstrip().startswith('{')
        assert load(path) == _resolved()


class TestRenderNotice:
    """Tests for render_notice()."""

    def test_contents(self) -> None:
        """Test contents."""
        notice = render_notice(_resolved())
        assert notice.startswith('THIRD-PARTY SOFTWARE NOTICES')
        assert 'foo 1.0.0' in notice
        assert 'License: MIT OR Apache-2.0' in notice
        assert 'Source: https://bar.dev' in notice
        assert 'Permission is hereby granted' in notice
        assert '(no license text found)' in notice
        assert notice.endswith('\n')

    def test_order(self) -> None:
        """Test order."""
        notice = render_notice(_resolved())
        assert notice.index('foo 1.0.0') < notice.index('bar 2.1.0') < notice.index('lost 0.0.1')

    def test_empty(self) -> None:
        """Test empty."""
        assert render_notice(ResolvedSet()) == 'THIRD-PARTY SOFTWARE NOTICES\n'


def test_no_stray_files_after_success(tmp_path: Path) -> None:
    """Test no stray files after success."""
    persist(_resolved(), tmp_path / 'out.json')
    assert os.listdir(tmp_path) == ['out.json']
