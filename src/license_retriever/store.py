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

"""Persist and load a :class:`~license_retriever.ResolvedSet` artifact.

The artifact is a schema-tagged document, written as JSON (default) or
TOML::

    {
      "schema": "license-retriever/resolved-set",
      "schema_version": "1.1",
      "packages": [
        {
          "name": "foo",
          "version": "1.0.0",
          "license": "MIT",
          "repository": "https://github.com/acme/foo",
          "homepage": null,
          "local_manifest_dir": "/src/foo",
          "cache_dir": null,
          "source": "local-manifest",
          "texts": ["MIT License ..."]
        }
      ]
    }

Package directories are stored as strings and restored as paths. In
TOML, a text is a multiline string only when it has no carriage return
and no leading newline, so every text loads back byte for byte. A
reader accepts any ``1.x`` document and ignores fields it does not know;
a different major version is rejected.

Writes are atomic: the document goes to a temporary file in the
destination directory, is fsynced, then renamed over the destination.
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomlkit

from license_retriever._types import LicenseResult, LicenseSource, PackageRecord, ResolvedSet
from license_retriever.errors import (
    ArtifactNotFoundError,
    CorruptArtifactError,
    PersistError,
    SchemaMismatchError,
)
from license_retriever.logging import get_logger

__all__ = [
    'SCHEMA',
    'SCHEMA_VERSION',
    'dumps',
    'load',
    'loads',
    'persist',
    'render_notice',
]

log = get_logger('license_retriever.store')

# ── Constants ────────────────────────────────────────────────────────

SCHEMA: Final[str] = 'license-retriever/resolved-set'
SCHEMA_VERSION: Final[str] = '1.1'

_OPTIONAL_FIELDS: Final[tuple[str, ...]] = ('license', 'repository', 'homepage')
_PATH_FIELDS: Final[tuple[str, ...]] = ('local_manifest_dir', 'cache_dir')

_NOTICE_RULE: Final[str] = '=' * 80


# ── Encoding ─────────────────────────────────────────────────────────


def _path_str(path: Path | None) -> str | None:
    return str(path) if path is not None else None


def _multiline_safe(text: str) -> bool:
    """Whether *text* survives a TOML multiline string unchanged."""
    return '\n' in text and '\r' not in text and not text.startswith('\n')


def _to_document(resolved: ResolvedSet) -> dict[str, Any]:
    packages: list[dict[str, Any]] = []
    for result in resolved:
        pkg = result.package
        packages.append({
            'name': pkg.name,
            'version': pkg.version,
            'license': pkg.license,
            'repository': pkg.repository,
            'homepage': pkg.homepage,
            'local_manifest_dir': _path_str(pkg.local_manifest_dir),
            'cache_dir': _path_str(pkg.cache_dir),
            'source': result.source.value,
            'texts': list(result.texts),
        })
    return {'schema': SCHEMA, 'schema_version': SCHEMA_VERSION, 'packages': packages}


def _to_toml(document: dict[str, Any]) -> str:
    doc = tomlkit.document()
    doc.add('schema', document['schema'])
    doc.add('schema_version', document['schema_version'])
    packages = tomlkit.aot()
    for entry in document['packages']:
        table = tomlkit.table()
        for key, value in entry.items():
            # TOML has no null.
            if value is None:
                continue
            if key == 'texts':
                texts = tomlkit.array()
                texts.multiline(True)
                for text in value:
                    texts.append(tomlkit.string(text, multiline=_multiline_safe(text)))
                table.add(key, texts)
            else:
                table.add(key, value)
        packages.append(table)
    doc.add('packages', packages)
    return tomlkit.dumps(doc)


def dumps(resolved: ResolvedSet, *, output_format: str = 'json') -> str:
    """Serialize *resolved* to a document string.

    Args:
        resolved: The results to serialize.
        output_format: ``'json'`` or ``'toml'``.

    Raises:
        ValueError: If *output_format* is not supported.
    """
    document = _to_document(resolved)
    if output_format == 'json':
        return json.dumps(document, indent=2, ensure_ascii=False) + '\n'
    if output_format == 'toml':
        return _to_toml(document)
    raise ValueError(f'Unsupported output format {output_format!r}; expected "json" or "toml"')


def persist(resolved: ResolvedSet, destination: Path | str, *, output_format: str = 'json') -> Path:
    """Atomically write *resolved* to *destination*.

    Any existing artifact is fully replaced. On failure the destination
    is left untouched and no temporary file remains.

    Returns:
        The destination path.

    Raises:
        PersistError: If the artifact cannot be written.
    """
    destination = Path(destination)
    content = dumps(resolved, output_format=output_format)
    parent = destination.parent
    tmp_name = ''
    try:
        parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=parent, prefix=f'.{destination.name}.', suffix='.tmp')
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, destination)
    except OSError as exc:
        if tmp_name:
            Path(tmp_name).unlink(missing_ok=True)
        raise PersistError(destination, f'cannot write artifact: {exc}') from exc

    log.info(
        'artifact_written',
        path=str(destination),
        format=output_format,
        packages=len(resolved),
        unresolved=len(resolved.unresolved()),
    )
    return destination


# ── Decoding ─────────────────────────────────────────────────────────


def _decode(path: Path, content: str) -> Any:  # noqa: ANN401
    """Parse *content* as JSON or TOML, sniffed from the first character."""
    stripped = content.lstrip()
    try:
        if stripped.startswith('{'):
            return json.loads(stripped)
        return tomllib.loads(content)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise CorruptArtifactError(path, f'cannot decode artifact: {exc}') from exc


def _check_schema(path: Path, document: Mapping[str, Any]) -> None:
    schema = document.get('schema')
    if schema != SCHEMA:
        raise SchemaMismatchError(path, str(schema), SCHEMA)
    version = document.get('schema_version')
    if not isinstance(version, str):
        raise CorruptArtifactError(path, 'schema_version must be a string')
    major = version.split('.', 1)[0]
    if major != SCHEMA_VERSION.split('.', 1)[0]:
        raise SchemaMismatchError(path, version, SCHEMA_VERSION)


def _optional_str(path: Path, index: int, entry: Mapping[str, Any], key: str) -> str | None:
    value = entry.get(key)
    if value is not None and not isinstance(value, str):
        raise CorruptArtifactError(path, f'packages[{index}].{key} must be a string')
    return value


def _parse_result(path: Path, index: int, entry: Any) -> LicenseResult:  # noqa: ANN401
    if not isinstance(entry, dict):
        raise CorruptArtifactError(path, f'packages[{index}] must be a table')
    for key in ('name', 'version', 'source'):
        if not isinstance(entry.get(key), str):
            raise CorruptArtifactError(path, f'packages[{index}].{key} must be a string')
    texts = entry.get('texts', [])
    if not isinstance(texts, list) or not all(isinstance(t, str) for t in texts):
        raise CorruptArtifactError(path, f'packages[{index}].texts must be a list of strings')
    try:
        source = LicenseSource(entry['source'])
    except ValueError as exc:
        raise CorruptArtifactError(path, f'packages[{index}].source: unknown source {entry["source"]!r}') from exc

    optional: dict[str, Any] = {key: _optional_str(path, index, entry, key) for key in _OPTIONAL_FIELDS}
    for key in _PATH_FIELDS:
        value = _optional_str(path, index, entry, key)
        optional[key] = Path(value) if value is not None else None
    package = PackageRecord(name=entry['name'], version=entry['version'], **optional)
    try:
        return LicenseResult(package, tuple(texts), source)
    except ValueError as exc:
        raise CorruptArtifactError(path, f'packages[{index}]: {exc}') from exc


def loads(content: str, *, path: Path | str = '<string>') -> ResolvedSet:
    """Parse an artifact document from *content*.

    Args:
        content: JSON or TOML document text.
        path: Path used in error messages.

    Raises:
        CorruptArtifactError: If the document is undecodable or invalid.
        SchemaMismatchError: If the schema tag or major version differs.
    """
    path = Path(path)
    document = _decode(path, content)
    if not isinstance(document, dict):
        raise CorruptArtifactError(path, 'artifact must be a table at the top level')
    _check_schema(path, document)
    packages = document.get('packages', [])
    if not isinstance(packages, list):
        raise CorruptArtifactError(path, 'packages must be a list')
    return ResolvedSet(tuple(_parse_result(path, i, entry) for i, entry in enumerate(packages)))


def load(source: Path | str) -> ResolvedSet:
    """Load an artifact written by :func:`persist`.

    Raises:
        ArtifactNotFoundError: If *source* does not exist.
        CorruptArtifactError: If the artifact is unreadable or invalid.
        SchemaMismatchError: If the schema tag or major version differs.
    """
    path = Path(source)
    try:
        content = path.read_text(encoding='utf-8')
    except FileNotFoundError as exc:
        raise ArtifactNotFoundError(
            path,
            'artifact not found',
            hint="Run 'license-retriever resolve' to generate it.",
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise CorruptArtifactError(path, f'cannot read artifact: {exc}') from exc
    resolved = loads(content, path=path)
    log.debug('artifact_loaded', path=str(path), packages=len(resolved))
    return resolved


# ── Notice ───────────────────────────────────────────────────────────


def render_notice(resolved: ResolvedSet) -> str:
    """Render a human-readable third-party notice.

    Packages appear in artifact order; each block lists the package,
    its declared license and every license text. Unresolved packages
    get a placeholder line.
    """
    blocks: list[str] = ['THIRD-PARTY SOFTWARE NOTICES', '']
    for result in resolved:
        pkg = result.package
        header = [_NOTICE_RULE, f'{pkg.name} {pkg.version}']
        if pkg.license:
            header.append(f'License: {pkg.license}')
        if pkg.repository or pkg.homepage:
            header.append(f'Source: {pkg.repository or pkg.homepage}')
        header.append(_NOTICE_RULE)
        blocks.append('\n'.join(header))
        if not result.texts:
            blocks.append('(no license text found)')
        for text in result.texts:
            blocks.append(text.strip('\n'))
        blocks.append('')
    return '\n\n'.join(blocks).rstrip('\n') + '\n'
