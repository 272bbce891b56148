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

"""Read-only state shared by every strategy invocation in one run."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from license_retriever._types import PackageRecord
from license_retriever.config import Config

__all__ = [
    'Strategy',
    'StrategyContext',
]


@dataclass(frozen=True)
class StrategyContext:
    """Shared, immutable inputs for strategies.

    Attributes:
        config: The run configuration.
        client: HTTP client shared by all remote calls of the run.
    """

    config: Config
    client: httpx.AsyncClient


#: A strategy returns the license texts it found, or an empty list.
Strategy = Callable[[PackageRecord, StrategyContext], Awaitable[list[str]]]
