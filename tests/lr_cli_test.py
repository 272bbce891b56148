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

"""Tests for the license-retriever CLI."""

from __future__ import annotations

import json
from io import StringIO
from pathlib import Path

import pytest
from license_retriever._types import LicenseResult, LicenseSource, PackageRecord, ResolvedSet
from license_retriever.cli import build_parser, main, print_resolved_table
from license_retriever.store import load, persist
from rich.console import Console


def _write_packages(tmp_path: Path) -> Path:
    pkg_dir = tmp_path / 'crates' / 'foo'
    pkg_dir.mkdir(parents=True)
    (pkg_dir / 'LICENSE').write_text('MIT License text', encoding='utf-8')
    path = tmp_path / 'packages.json'
    path.write_text(
        json.dumps([
            {'name': 'foo', 'version': '1.0.0', 'license': 'MIT', 'local_manifest_dir': 'crates/foo'},
            {'name': 'lost', 'version': '0.1.0'},
        ]),
        encoding='utf-8',
    )
    return path


def _resolved() -> ResolvedSet:
    return ResolvedSet((
        LicenseResult(
            PackageRecord(name='foo', version='1.0.0', license='MIT'),
            ('MIT text',),
            LicenseSource.STATIC_TABLE,
        ),
        LicenseResult(PackageRecord(name='lost', version='0.1.0')),
    ))


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test from an empty directory with no token."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('GITHUB_TOKEN', raising=False)
    monkeypatch.delenv('GH_TOKEN', raising=False)


class TestParser:
    """Tests for build_parser()."""

    def test_requires_command(self) -> None:
        """Test requires command."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_resolve_args(self) -> None:
        """Test resolve args."""
        args = build_parser().parse_args(['-v', 'resolve', 'p.json', '--format', 'toml', '-o', 'OUT'])
        assert args.command == 'resolve'
        assert args.verbose is True
        assert args.format == 'toml'
        assert args.output == Path('OUT')
        assert args.fail_on_unresolved is None

    def test_show_default_artifact(self) -> None:
        """Test show default artifact."""
        assert build_parser().parse_args(['show']).artifact == Path('LICENSE-3RD-PARTY')


class TestResolveCommand:
    """Tests for the resolve subcommand."""

    def test_writes_artifact(self, tmp_path: Path) -> None:
        """Test writes artifact."""
        packages = _write_packages(tmp_path)
        assert main(['-q', 'resolve', str(packages)]) == 0
        resolved = load(tmp_path / 'LICENSE-3RD-PARTY')
        assert resolved[0].texts == ('MIT License text',)
        assert resolved[0].source is LicenseSource.LOCAL_MANIFEST
        assert resolved[1].source is LicenseSource.UNRESOLVED

    def test_fail_on_unresolved(self, tmp_path: Path) -> None:
        """Test fail on unresolved."""
        packages = _write_packages(tmp_path)
        assert main(['-q', 'resolve', str(packages), '--fail-on-unresolved']) == 1
        assert not (tmp_path / 'LICENSE-3RD-PARTY').exists()

    def test_config_file_discovered(self, tmp_path: Path) -> None:
        """license-retriever.toml in the working directory is used."""
        packages = _write_packages(tmp_path)
        (tmp_path / 'license-retriever.toml').write_text(
            'output = "third_party.toml"\noutput_format = "toml"\n\n[strategy_overrides]\nlost = "LOST TEXT"\n',
            encoding='utf-8',
        )
        assert main(['-q', 'resolve', str(packages)]) == 0
        resolved = load(tmp_path / 'third_party.toml')
        assert resolved[1].texts == ('LOST TEXT',)

    def test_bad_config(self, tmp_path: Path) -> None:
        """Test bad config."""
        packages = _write_packages(tmp_path)
        bad = tmp_path / 'bad.toml'
        bad.write_text('bogus = 1\n', encoding='utf-8')
        assert main(['-q', 'resolve', str(packages), '--config', str(bad)]) == 1


class TestShowCommand:
    """Tests for the show subcommand."""

    def test_table(self) -> None:
        """Test table."""
        buf = StringIO()
        print_resolved_table(_resolved(), Console(file=buf, width=120))
        out = buf.getvalue()
        assert 'foo' in out
        assert 'static-table' in out
        assert '1 of 2 package(s) unresolved' in out

    def test_unresolved_only(self) -> None:
        """Test unresolved only."""
        buf = StringIO()
        print_resolved_table(_resolved(), Console(file=buf, width=120), unresolved_only=True)
        out = buf.getvalue()
        assert 'lost' in out
        assert 'foo' not in out

    def test_missing_artifact(self) -> None:
        """Test missing artifact."""
        assert main(['show', 'nope']) == 1

    def test_show(self, tmp_path: Path) -> None:
        """Test show."""
        persist(_resolved(), tmp_path / 'LICENSE-3RD-PARTY')
        assert main(['-q', 'show']) == 0


class TestNoticeCommand:
    """Tests for the notice subcommand."""

    def test_stdout(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test stdout."""
        persist(_resolved(), tmp_path / 'LICENSE-3RD-PARTY')
        assert main(['-q', 'notice']) == 0
        assert 'MIT text' in capsys.readouterr().out

    def test_file(self, tmp_path: Path) -> None:
        """Test file."""
        persist(_resolved(), tmp_path / 'LICENSE-3RD-PARTY')
        assert main(['-q', 'notice', '-o', 'NOTICE.txt']) == 0
        assert 'foo 1.0.0' in (tmp_path / 'NOTICE.txt').read_text(encoding='utf-8')
