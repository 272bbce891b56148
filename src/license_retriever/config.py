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

r"""Resolution configuration and its TOML loader.

A :class:`Config` is read once at the start of a run and never mutated.
It can be built directly or parsed from TOML, either a standalone
``license-retriever.toml`` or the ``[tool.license-retriever]`` table of
a ``pyproject.toml``::

    github_token = "..."          # optional, else $GITHUB_TOKEN / $GH_TOKEN
    output = "LICENSE-3RD-PARTY"
    output_format = "json"        # or "toml"
    fail_on_unresolved = false
    ignored = ["my-own-crate"]
    concurrency = 8
    timeout = 10.0
    max_retries = 2
    license_table = "extra-licenses.toml"

    [copy_licenses]
    "winapi-x86_64-pc-windows-gnu" = "winapi"

    [strategy_overrides.ring]
    texts = ["...full license text..."]

    [strategy_overrides.gloo-timers]
    urls = ["https://raw.githubusercontent.com/rustwasm/gloo/master/LICENSE-MIT"]

    [strategy_overrides.openssl-sys]
    strategy = "static-table"

Every key is validated; unknown keys and wrong types raise
:class:`~license_retriever.errors.ConfigError`.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from license_retriever._types import LicenseSource
from license_retriever.errors import ConfigError

__all__ = [
    'DEFAULT_OUTPUT',
    'OUTPUT_FORMATS',
    'Config',
    'StrategyOverride',
    'load_config',
    'parse_config',
]

#: Default artifact file name.
DEFAULT_OUTPUT: Final[str] = 'LICENSE-3RD-PARTY'

#: Supported artifact serialization schemes.
OUTPUT_FORMATS: Final[frozenset[str]] = frozenset({'json', 'toml'})

_TOKEN_ENV_VARS: Final[tuple[str, ...]] = ('GITHUB_TOKEN', 'GH_TOKEN')

_STRATEGY_SOURCES: Final[frozenset[LicenseSource]] = frozenset(LicenseSource) - {LicenseSource.UNRESOLVED}

_CONFIG_KEYS: Final[frozenset[str]] = frozenset({
    'github_token',
    'strategy_overrides',
    'output_format',
    'output',
    'ignored',
    'copy_licenses',
    'fail_on_unresolved',
    'concurrency',
    'timeout',
    'max_retries',
    'api_base_url',
    'license_table',
})

_OVERRIDE_KEYS: Final[frozenset[str]] = frozenset({'texts', 'strategy', 'urls'})


@dataclass(frozen=True)
class StrategyOverride:
    """A per-package replacement for the normal strategy chain.

    Exactly one field is set.

    Attributes:
        texts: Forced license texts, used verbatim.
        strategy: The single strategy to run for the package.
        urls: Raw license file URLs to download.
    """

    texts: tuple[str, ...] = ()
    strategy: LicenseSource | None = None
    urls: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Reject overrides that set zero or several fields."""
        set_fields = sum((bool(self.texts), self.strategy is not None, bool(self.urls)))
        if set_fields != 1:
            raise ConfigError('A strategy override must set exactly one of "texts", "strategy" or "urls"')
        if self.strategy is LicenseSource.UNRESOLVED:
            raise ConfigError(f'{self.strategy.value!r} is not a strategy')
        if any(not text.strip() for text in self.texts):
            raise ConfigError('Forced license texts must not be blank')


@dataclass(frozen=True)
class Config:
    """Options for one resolution run.

    Attributes:
        github_token: Credential for the repository license API. Raises
            the rate limit; never logged.
        strategy_overrides: Package name → :class:`StrategyOverride`.
        output_format: Artifact serialization scheme (``"json"`` or
            ``"toml"``).
        output: Artifact destination path.
        ignored: Packages whose unresolved state is neither reported
            nor fatal.
        copy_licenses: Copier package name → copied package name. The
            copier takes the copied package's resolved texts.
        fail_on_unresolved: Raise
            :class:`~license_retriever.errors.UnresolvedLicensesError`
            when a non-ignored package stays unresolved.
        concurrency: Maximum packages resolved at the same time.
        timeout: Per-request timeout in seconds for remote calls.
        max_retries: Retries for transient remote failures.
        api_base_url: Base URL of the repository hosting API.
        license_table: Optional user TOML table merged over the built-in
            static license table.
    """

    github_token: str | None = None
    strategy_overrides: Mapping[str, StrategyOverride] = field(default_factory=dict)
    output_format: str = 'json'
    output: Path = Path(DEFAULT_OUTPUT)
    ignored: frozenset[str] = frozenset()
    copy_licenses: Mapping[str, str] = field(default_factory=dict)
    fail_on_unresolved: bool = False
    concurrency: int = 8
    timeout: float = 10.0
    max_retries: int = 2
    api_base_url: str = 'https://api.github.com'
    license_table: Path | None = None

    def __post_init__(self) -> None:
        """Validate scalar options and freeze the mappings."""
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f'output_format must be one of {", ".join(sorted(OUTPUT_FORMATS))}, got {self.output_format!r}'
            )
        if self.concurrency < 1:
            raise ConfigError('concurrency must be a positive integer')
        if self.timeout <= 0:
            raise ConfigError('timeout must be a positive number')
        if self.max_retries < 0:
            raise ConfigError('max_retries must be a non-negative integer')
        object.__setattr__(self, 'strategy_overrides', MappingProxyType(dict(self.strategy_overrides)))
        object.__setattr__(self, 'copy_licenses', MappingProxyType(dict(self.copy_licenses)))
        object.__setattr__(self, 'ignored', frozenset(self.ignored))
        object.__setattr__(self, 'output', Path(self.output))
        if self.license_table is not None:
            object.__setattr__(self, 'license_table', Path(self.license_table))

    def with_env_token(self) -> Config:
        """Return a copy whose token falls back to ``$GITHUB_TOKEN`` / ``$GH_TOKEN``."""
        if self.github_token:
            return self
        for name in _TOKEN_ENV_VARS:
            token = os.environ.get(name, '')
            if token:
                return replace(self, github_token=token)
        return self


# ── Parsing ──────────────────────────────────────────────────────────


def _check_keys(section: str, raw: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ConfigError(
            f'Unknown key(s) in {section}: {", ".join(unknown)}',
            hint=f'Allowed keys: {", ".join(sorted(allowed))}',
        )


def _str_list(name: str, value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigError(f'{name} must be a list of strings, got {type(value).__name__}')
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ConfigError(f'{name}[{i}] must be a string, got {type(item).__name__}')
    return tuple(value)


def _parse_override(name: str, raw: object) -> StrategyOverride:
    section = f'strategy_overrides.{name}'
    if isinstance(raw, str):
        # Shorthand: `pkg = "full license text"`.
        raw = {'texts': [raw]}
    if not isinstance(raw, dict):
        raise ConfigError(f'{section} must be a table or a string, got {type(raw).__name__}')
    _check_keys(section, raw, _OVERRIDE_KEYS)
    strategy: LicenseSource | None = None
    if 'strategy' in raw:
        value = raw['strategy']
        try:
            strategy = LicenseSource(value)
        except ValueError:
            strategy = None
        if strategy not in _STRATEGY_SOURCES:
            choices = ', '.join(sorted(s.value for s in _STRATEGY_SOURCES))
            raise ConfigError(f'{section}.strategy must be one of {choices}, got {value!r}')
    texts = _str_list(f'{section}.texts', raw['texts']) if 'texts' in raw else ()
    urls = _str_list(f'{section}.urls', raw['urls']) if 'urls' in raw else ()
    try:
        return StrategyOverride(texts=texts, strategy=strategy, urls=urls)
    except ConfigError as exc:
        raise ConfigError(f'{section}: {exc}') from exc


def parse_config(raw: Mapping[str, Any], *, base_dir: Path | None = None) -> Config:
    """Build a :class:`Config` from a parsed TOML table.

    Args:
        raw: The configuration table.
        base_dir: Directory relative ``output`` and ``license_table``
            paths are resolved against. Left relative when ``None``.

    Raises:
        ConfigError: On unknown keys or values of the wrong type.
    """
    _check_keys('config', raw, _CONFIG_KEYS)
    kwargs: dict[str, Any] = {}

    if 'github_token' in raw:
        if not isinstance(raw['github_token'], str):
            raise ConfigError('github_token must be a string')
        kwargs['github_token'] = raw['github_token'] or None

    for key in ('output_format', 'output', 'api_base_url', 'license_table'):
        if key in raw:
            if not isinstance(raw[key], str) or not raw[key]:
                raise ConfigError(f'{key} must be a non-empty string')
            kwargs[key] = raw[key]
    for key in ('output', 'license_table'):
        if key in kwargs:
            path = Path(kwargs[key])
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            kwargs[key] = path

    if 'fail_on_unresolved' in raw:
        if not isinstance(raw['fail_on_unresolved'], bool):
            raise ConfigError('fail_on_unresolved must be a boolean')
        kwargs['fail_on_unresolved'] = raw['fail_on_unresolved']

    for key in ('concurrency', 'max_retries'):
        if key in raw:
            if not isinstance(raw[key], int) or isinstance(raw[key], bool):
                raise ConfigError(f'{key} must be an integer')
            kwargs[key] = raw[key]

    if 'timeout' in raw:
        if not isinstance(raw['timeout'], (int, float)) or isinstance(raw['timeout'], bool):
            raise ConfigError('timeout must be a number')
        kwargs['timeout'] = float(raw['timeout'])

    if 'ignored' in raw:
        kwargs['ignored'] = frozenset(_str_list('ignored', raw['ignored']))

    if 'copy_licenses' in raw:
        copies = raw['copy_licenses']
        if not isinstance(copies, dict):
            raise ConfigError('copy_licenses must be a table of package name → package name')
        for copier, copied in copies.items():
            if not isinstance(copied, str):
                raise ConfigError(f'copy_licenses.{copier} must be a string')
        kwargs['copy_licenses'] = dict(copies)

    if 'strategy_overrides' in raw:
        overrides = raw['strategy_overrides']
        if not isinstance(overrides, dict):
            raise ConfigError('strategy_overrides must be a table')
        kwargs['strategy_overrides'] = {name: _parse_override(name, value) for name, value in overrides.items()}

    return Config(**kwargs)


def load_config(path: Path) -> Config:
    """Load configuration from a TOML file.

    For a file named ``pyproject.toml`` the ``[tool.license-retriever]``
    table is used (an absent table yields the defaults); any other file
    is read as a whole. Relative ``output`` paths resolve against the
    file's directory.

    Raises:
        ConfigError: If the file cannot be read or parsed, or holds
            invalid options.
    """
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except OSError as exc:
        raise ConfigError(f'Cannot read config {path}: {exc.strerror or exc}') from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f'Invalid TOML in {path}: {exc}') from exc

    if path.name == 'pyproject.toml':
        data = data.get('tool', {}).get('license-retriever', {})
        if not isinstance(data, dict):
            raise ConfigError(f'{path}: [tool.license-retriever] must be a table')
    return parse_config(data, base_dir=path.parent)
