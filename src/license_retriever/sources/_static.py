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

r"""Static SPDX identifier → canonical license text table.

The built-in table lives in ``data/licenses.toml``; an optional user
table in the same format is merged on top (user entries replace
built-in entries with the same identifier)::

    [MyCorp-Internal-1.0]
    name = "MyCorp Internal License"
    aliases = ["mycorp internal"]
    text = '''
    ...
    '''

Tables are loaded once per process and path, and never mutated.

Lookup order for an identifier:
    1. Exact SPDX identifier.
    2. Case-insensitive identifier (``mit`` → ``MIT``).
    3. Case-insensitive alias (``Apache 2.0`` → ``Apache-2.0``).
"""

from __future__ import annotations

import functools
import sys
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Final

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from license_retriever._types import PackageRecord
from license_retriever.errors import LicenseDataError
from license_retriever.logging import get_logger
from license_retriever.sources._context import StrategyContext
from license_retriever.spdx_expr import license_ids

__all__ = [
    'LicenseEntry',
    'LicenseTable',
    'from_static_table',
    'load_license_table',
]

log = get_logger('license_retriever.sources.static')

_BUILTIN_TABLE: Final[Path] = Path(__file__).resolve().parent.parent / 'data' / 'licenses.toml'


@dataclass(frozen=True)
class LicenseEntry:
    """One license in the static table.

    Attributes:
        spdx_id: Canonical SPDX identifier.
        name: Human-readable full name.
        text: Canonical license text.
        aliases: Alternative spellings, matched case-insensitively.
    """

    spdx_id: str
    name: str
    text: str
    aliases: tuple[str, ...] = ()


class LicenseTable:
    """Immutable identifier → :class:`LicenseEntry` lookup table."""

    def __init__(self, entries: dict[str, LicenseEntry]) -> None:
        self._entries = MappingProxyType(dict(entries))
        folded: dict[str, str] = {}
        for spdx_id in entries:
            folded[spdx_id.lower()] = spdx_id
        for spdx_id, entry in entries.items():
            for alias in entry.aliases:
                # SPDX ids take priority over aliases.
                folded.setdefault(alias.lower(), spdx_id)
        self._folded = MappingProxyType(folded)

    def __len__(self) -> int:
        """Return the number of licenses."""
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        """``True`` if *identifier* resolves to a license in the table."""
        return isinstance(identifier, str) and self.get(identifier) is not None

    @property
    def ids(self) -> list[str]:
        """Sorted canonical identifiers."""
        return sorted(self._entries)

    def get(self, identifier: str) -> LicenseEntry | None:
        """Look up *identifier* by exact id, folded id, then alias."""
        entry = self._entries.get(identifier)
        if entry is not None:
            return entry
        spdx_id = self._folded.get(identifier.strip().lower())
        return self._entries[spdx_id] if spdx_id is not None else None

    def texts_for(self, expression: str | None) -> list[str]:
        """Return the texts of every known license named by *expression*.

        Texts follow the order identifiers appear in the expression;
        unknown identifiers are skipped.
        """
        if not expression:
            return []
        entries = [self.get(i) for i in license_ids(expression)]
        if not any(entries):
            # Non-SPDX declarations such as "Apache License 2.0".
            entries = [self.get(expression)]
        seen: set[str] = set()
        texts: list[str] = []
        for entry in entries:
            if entry is not None and entry.spdx_id not in seen:
                seen.add(entry.spdx_id)
                texts.append(entry.text)
        return texts


def _parse_table(path: Path) -> dict[str, LicenseEntry]:
    """Parse and validate one license table file."""
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise LicenseDataError([f'{path}: {exc}']) from exc

    errors: list[str] = []
    entries: dict[str, LicenseEntry] = {}
    for spdx_id, info in data.items():
        if not isinstance(info, dict):
            errors.append(f'[{spdx_id}]: expected a table, got {type(info).__name__}')
            continue
        for key in ('name', 'text'):
            if key not in info:
                errors.append(f'[{spdx_id}]: missing required field "{key}"')
            elif not isinstance(info[key], str) or not info[key].strip():
                errors.append(f'[{spdx_id}].{key}: expected a non-empty string')
        aliases = info.get('aliases', [])
        if not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases):
            errors.append(f'[{spdx_id}].aliases: expected a list of strings')
            aliases = []
        if not errors:
            entries[spdx_id] = LicenseEntry(
                spdx_id=spdx_id,
                name=info['name'],
                text=info['text'],
                aliases=tuple(aliases),
            )
    if errors:
        raise LicenseDataError(errors)
    return entries


@functools.lru_cache(maxsize=8)
def load_license_table(user_table: Path | None = None) -> LicenseTable:
    """Load the built-in table, merged with *user_table* if given.

    Cached per process and path.

    Raises:
        LicenseDataError: If a table file is unreadable or invalid.
    """
    entries = _parse_table(_BUILTIN_TABLE)
    if user_table is not None:
        entries.update(_parse_table(user_table))
    log.debug('license_table_loaded', licenses=len(entries), user_table=str(user_table or ''))
    return LicenseTable(entries)


async def from_static_table(package: PackageRecord, ctx: StrategyContext) -> list[str]:
    """Canonical texts for the package's declared license expression."""
    return load_license_table(ctx.config.license_table).texts_for(package.license)
