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

"""Tests for license_retriever.spdx_expr."""

from __future__ import annotations

import pytest
from license_retriever.spdx_expr import ParseError, license_ids, tokenize


class TestTokenize:
    """Tests for tokenize()."""

    def test_simple_or(self) -> None:
        """Test simple or."""
        kinds = [t.kind for t in tokenize('MIT OR Apache-2.0')]
        assert kinds == ['ID', 'OR', 'ID']

    def test_slash_is_or(self) -> None:
        """Legacy slash separators tokenize as OR."""
        tokens = tokenize('MIT/Apache-2.0')
        assert [(t.kind, t.value) for t in tokens] == [('ID', 'MIT'), ('OR', 'OR'), ('ID', 'Apache-2.0')]

    def test_plus_suffix_dropped(self) -> None:
        """Test plus suffix dropped."""
        assert tokenize('GPL-2.0+')[0].value == 'GPL-2.0'

    def test_operator_prefix_is_identifier(self) -> None:
        """Identifiers starting with an operator word stay identifiers."""
        tokens = tokenize('ORACLE-1.0')
        assert [(t.kind, t.value) for t in tokens] == [('ID', 'ORACLE-1.0')]

    def test_positions(self) -> None:
        """Test positions."""
        assert [t.pos for t in tokenize('(MIT)')] == [0, 1, 4]

    def test_unbalanced_close(self) -> None:
        """Test unbalanced close."""
        with pytest.raises(ParseError, match='unbalanced'):
            tokenize('MIT)')

    def test_unclosed_open(self) -> None:
        """Test unclosed open."""
        with pytest.raises(ParseError, match='unclosed'):
            tokenize('(MIT')

    def test_bad_character(self) -> None:
        """Test bad character."""
        with pytest.raises(ParseError, match='unexpected character'):
            tokenize('MIT & Apache-2.0')


class TestLicenseIds:
    """Tests for license_ids()."""

    @pytest.mark.parametrize(
        ('expr', 'expected'),
        [
            ('MIT', ['MIT']),
            ('MIT OR Apache-2.0', ['MIT', 'Apache-2.0']),
            ('(MIT OR Apache-2.0) AND BSD-3-Clause', ['MIT', 'Apache-2.0', 'BSD-3-Clause']),
            ('Apache-2.0 WITH LLVM-exception', ['Apache-2.0']),
            ('MIT OR MIT', ['MIT']),
            ('MIT/Apache-2.0', ['MIT', 'Apache-2.0']),
            ('MIT AND LicenseRef-Proprietary', ['MIT']),
            ('', []),
            ('   ', []),
        ],
    )
    def test_ids(self, expr: str, expected: list[str]) -> None:
        """Test ids."""
        assert license_ids(expr) == expected

    def test_malformed_falls_back(self) -> None:
        """Malformed expressions are split instead of raising."""
        assert license_ids('MIT, Apache-2.0 (') == ['MIT', 'Apache-2.0']
