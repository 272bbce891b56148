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

"""``license-retriever`` command-line entry point.

Subcommands::

    license-retriever resolve packages.json    # write LICENSE-3RD-PARTY
    license-retriever show                     # table of the artifact
    license-retriever notice -o NOTICE.txt     # plain-text notice

Configuration is read from ``--config``, else ``license-retriever.toml``
in the working directory, else ``[tool.license-retriever]`` in
``pyproject.toml``. Exit status is 1 on any library error.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from license_retriever._types import LicenseSource, ResolvedSet
from license_retriever.config import DEFAULT_OUTPUT, OUTPUT_FORMATS, Config, load_config
from license_retriever.errors import LicenseRetrieverError
from license_retriever.logging import configure_logging, get_logger
from license_retriever.packages import load_package_records
from license_retriever.resolver import resolve
from license_retriever.store import load, persist, render_notice

__all__ = [
    'build_parser',
    'main',
    'print_resolved_table',
]

log = get_logger('license_retriever.cli')

_CONFIG_CANDIDATES = ('license-retriever.toml', 'pyproject.toml')

_SOURCE_STYLE: dict[LicenseSource, str] = {
    LicenseSource.LOCAL_MANIFEST: 'green',
    LicenseSource.CRATE_CACHE: 'green',
    LicenseSource.REMOTE_REPOSITORY: 'cyan',
    LicenseSource.STATIC_TABLE: 'yellow',
    LicenseSource.UNRESOLVED: 'bold red',
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='license-retriever',
        description='Resolve and bundle the license texts of third-party dependencies.',
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging.')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Only log warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Emit logs as JSON lines.')
    sub = parser.add_subparsers(dest='command', required=True)

    p_resolve = sub.add_parser('resolve', help='Resolve license texts and write the artifact.')
    p_resolve.add_argument(
        'packages',
        type=Path,
        help='JSON package list, or the output of "cargo metadata --format-version 1".',
    )
    p_resolve.add_argument('-c', '--config', type=Path, help='Configuration TOML file.')
    p_resolve.add_argument('-o', '--output', type=Path, help=f'Artifact path (default: {DEFAULT_OUTPUT}).')
    p_resolve.add_argument('--format', choices=sorted(OUTPUT_FORMATS), help='Artifact format.')
    p_resolve.add_argument(
        '--fail-on-unresolved',
        action='store_true',
        default=None,
        help='Exit with an error if any non-ignored package stays unresolved.',
    )

    p_show = sub.add_parser('show', help='Print the packages in an artifact.')
    p_show.add_argument('artifact', type=Path, nargs='?', default=Path(DEFAULT_OUTPUT))
    p_show.add_argument('--unresolved', action='store_true', help='Only list unresolved packages.')

    p_notice = sub.add_parser('notice', help='Render a third-party notice from an artifact.')
    p_notice.add_argument('artifact', type=Path, nargs='?', default=Path(DEFAULT_OUTPUT))
    p_notice.add_argument('-o', '--output', type=Path, help='Write to a file instead of stdout.')
    return parser


def _find_config(explicit: Path | None) -> Config:
    if explicit is not None:
        return load_config(explicit)
    for name in _CONFIG_CANDIDATES:
        candidate = Path(name)
        if candidate.is_file():
            log.debug('config_found', path=str(candidate))
            return load_config(candidate)
    return Config()


def print_resolved_table(
    resolved: ResolvedSet,
    console: Console | None = None,
    *,
    unresolved_only: bool = False,
) -> None:
    """Print *resolved* as a Rich table."""
    if console is None:
        console = Console()

    table = Table(show_header=True, header_style='bold', show_edge=False, pad_edge=False)
    table.add_column('Package', style='bold')
    table.add_column('Version')
    table.add_column('License', style='dim')
    table.add_column('Source')
    table.add_column('Texts', justify='right')

    for result in resolved:
        if unresolved_only and result.resolved:
            continue
        pkg = result.package
        table.add_row(
            pkg.name,
            pkg.version,
            pkg.license or '',
            Text(result.source.value, style=_SOURCE_STYLE[result.source]),
            str(len(result.texts)),
        )
    console.print(table)

    missing = len(resolved.unresolved())
    if missing:
        console.print(f'\n[bold red]{missing}[/] of {len(resolved)} package(s) unresolved.')
    else:
        console.print(f'\n[bold green]{len(resolved)} package(s) resolved.[/]')


def _cmd_resolve(args: argparse.Namespace) -> int:
    config = _find_config(args.config)
    changes: dict[str, object] = {}
    if args.output is not None:
        changes['output'] = args.output
    if args.format is not None:
        changes['output_format'] = args.format
    if args.fail_on_unresolved is not None:
        changes['fail_on_unresolved'] = args.fail_on_unresolved
    config = replace(config, **changes).with_env_token()
    if config.github_token:
        configure_logging(
            verbose=args.verbose,
            quiet=args.quiet,
            json_log=args.json_log,
            extra_secrets=(config.github_token,),
        )

    packages = load_package_records(args.packages)
    resolved = resolve(packages, config)
    persist(resolved, config.output, output_format=config.output_format)
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    print_resolved_table(load(args.artifact), unresolved_only=args.unresolved)
    return 0


def _cmd_notice(args: argparse.Namespace) -> int:
    text = render_notice(load(args.artifact))
    if args.output is None:
        sys.stdout.write(text)
        return 0
    try:
        args.output.write_text(text, encoding='utf-8')
    except OSError as exc:
        raise LicenseRetrieverError(f'Cannot write notice {args.output}: {exc}') from exc
    log.info('notice_written', path=str(args.output))
    return 0


_COMMANDS = {
    'resolve': _cmd_resolve,
    'show': _cmd_show,
    'notice': _cmd_notice,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)
    try:
        return _COMMANDS[args.command](args)
    except LicenseRetrieverError as exc:
        err = Console(stderr=True)
        err.print(f'[bold red]error[/]: {escape(str(exc))}', highlight=False)
        if exc.hint:
            err.print(f'  [cyan]=[/] [green]help[/]: {escape(exc.hint)}', highlight=False)
        return 1


if __name__ == '__main__':
    sys.exit(main())
