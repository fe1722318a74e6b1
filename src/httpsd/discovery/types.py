# Copyright 2026 Firefly Software Solutions Inc.
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
"""Discoverer contract and factory type."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import httpx

from httpsd.core.config import Config
from httpsd.observability.metrics import MetricsRegistry
from httpsd.targetgroup import TargetGroup


@runtime_checkable
class Discoverer(Protocol):
    """Produces the current target groups for one query.

    Discoverers owning connections or background tasks also implement
    :class:`httpsd.kernel.Lifecycle`; the application starts and stops them.
    """

    async def refresh(self, params: httpx.QueryParams) -> list[TargetGroup]: ...


DiscovererFactory = Callable[[Config, MetricsRegistry, Any], Discoverer]
