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

r"""Extract license identifiers from SPDX license expressions.

Only the identifiers matter here: the static license table needs every
license named by a declared expression, in the order the expression
names them. Operator semantics (``AND`` vs ``OR``) are not evaluated.

Tokens::

    AND / and, OR / or, WITH / with, "(", ")", idstring ["+"]

plus the legacy ``/`` separator (``MIT/Apache-2.0``), which older
manifests used to mean ``OR``.

Rules:
    - The ``+`` (or-later) suffix is dropped: ``GPL-2.0+`` → ``GPL-2.0``.
    - The identifier following ``WITH`` is an exception, not a license,
      and is skipped.
    - ``LicenseRef-`` / ``DocumentRef-`` references are skipped; they
      never have canonical text.
    - Duplicates are dropped, keeping the first occurrence.

Usage::

    from license_retriever.spdx_expr import license_ids

    license_ids('MIT OR Apache-2.0')  # ['MIT', 'Apache-2.0']
    license_ids('(MIT OR Apache-2.0) AND Unicode-3.0')
    # ['MIT', 'Apache-2.0', 'Unicode-3.0']
    license_ids('GPL-2.0+ WITH Classpath-exception-2.0')  # ['GPL-2.0']
"""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = [
    'ParseError',
    'license_ids',
    'tokenize',
]


class ParseError(ValueError):
    """Raised when an SPDX expression cannot be tokenized.

    Attributes:
        expression: The original expression string.
        position: Character offset where the error was detected.
        detail: Human-readable description of the problem.
    """

    def __init__(self, expression: str, position: int, detail: str) -> None:
        """Initialize with expression text, error position, and detail message."""
        self.expression = expression
        self.position = position
        self.detail = detail
        marker = ' ' * position + '^'
        super().__init__(f'SPDX parse error at position {position}: {detail}\n  {expression}\n  {marker}')


# Operators are recognized only as whole words, so ``ANDROID-1.0`` stays
# an identifier.
_TOKEN_RE = re.compile(
    r"""
    (?:
        (?P<and>AND|and)(?![A-Za-z0-9.\-])
      | (?P<or>OR|or)(?![A-Za-z0-9.\-])
      | (?P<slash>/)                     # legacy "MIT/Apache-2.0"
      | (?P<with>WITH|with)(?![A-Za-z0-9.\-])
      | (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<id>
          (?:DocumentRef-[A-Za-z0-9.\-]+:)?
          (?:LicenseRef-|AdditionRef-)?
          [A-Za-z0-9.\-]+
        )
        \+?                              # or-later suffix, dropped
    )
    """,
    re.VERBOSE,
)

_TOK_AND = 'AND'
_TOK_OR = 'OR'
_TOK_WITH = 'WITH'
_TOK_LPAREN = '('
_TOK_RPAREN = ')'
_TOK_ID = 'ID'

_FALLBACK_SPLIT_RE = re.compile(r'[\s,;/()]+')
_OPERATOR_WORDS = frozenset({'and', 'or', 'with'})


@dataclass(frozen=True)
class Token:
    """A lexical token of an SPDX expression.

    Attributes:
        kind: One of ``AND``, ``OR``, ``WITH``, ``(``, ``)``, ``ID``.
        value: The token text (identifier without the ``+`` suffix).
        pos: Character offset of the token.
    """

    kind: str
    value: str
    pos: int


def tokenize(expr: str) -> list[Token]:
    """Tokenize an SPDX license expression.

    Raises:
        ParseError: On an unexpected character or unbalanced parentheses.
    """
    tokens: list[Token] = []
    depth = 0
    pos = 0
    while pos < len(expr):
        if expr[pos].isspace():
            pos += 1
            continue
        m = _TOKEN_RE.match(expr, pos)
        if m is None:
            raise ParseError(expr, pos, f'unexpected character {expr[pos]!r}')
        start = m.start()
        if m.group('and'):
            tokens.append(Token(_TOK_AND, 'AND', start))
        elif m.group('or') or m.group('slash'):
            tokens.append(Token(_TOK_OR, 'OR', start))
        elif m.group('with'):
            tokens.append(Token(_TOK_WITH, 'WITH', start))
        elif m.group('lparen'):
            depth += 1
            tokens.append(Token(_TOK_LPAREN, '(', start))
        elif m.group('rparen'):
            depth -= 1
            if depth < 0:
                raise ParseError(expr, start, 'unbalanced ")"')
            tokens.append(Token(_TOK_RPAREN, ')', start))
        else:
            tokens.append(Token(_TOK_ID, m.group('id'), start))
        pos = m.end()
    if depth:
        raise ParseError(expr, len(expr), 'unclosed "("')
    return tokens


def _is_reference(value: str) -> bool:
    return 'LicenseRef-' in value or 'DocumentRef-' in value or 'AdditionRef-' in value


def _fallback_ids(expr: str) -> list[str]:
    """Split a malformed expression on separators and operator words."""
    return [
        part.rstrip('+')
        for part in _FALLBACK_SPLIT_RE.split(expr)
        if part and part.lower() not in _OPERATOR_WORDS and not _is_reference(part)
    ]


def license_ids(expr: str) -> list[str]:
    """Return the license identifiers named by *expr*, in order.

    Malformed expressions do not raise: they are split on whitespace,
    separators and operator words instead.

    Args:
        expr: An SPDX license expression (e.g. ``"MIT OR Apache-2.0"``).

    Returns:
        Unique identifiers in order of first appearance. Empty for an
        empty expression.
    """
    if not expr or not expr.strip():
        return []
    try:
        tokens = tokenize(expr)
    except ParseError:
        ids = _fallback_ids(expr)
    else:
        ids = []
        after_with = False
        for tok in tokens:
            if tok.kind == _TOK_WITH:
                after_with = True
                continue
            if tok.kind != _TOK_ID:
                continue
            if after_with:
                after_with = False
                continue
            if not _is_reference(tok.value):
                ids.append(tok.value)
    return list(dict.fromkeys(ids))
