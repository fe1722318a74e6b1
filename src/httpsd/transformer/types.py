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
"""Transformer protocol: converts one upstream response format into target groups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx

from httpsd.targetgroup import TargetGroup


@runtime_checkable
class Transformer(Protocol):
    """Plugin contract used by the HTTP discovery engine.

    Transformers are registered once at start-up and never mutated afterwards,
    so a single instance serves concurrent requests.
    """

    @property
    def name(self) -> str: ...

    @property
    def http_method(self) -> str: ...

    def build_target_url(self, base_url: str, params: httpx.QueryParams) -> str: ...

    def transform(self, body: bytes) -> list[TargetGroup | None]: ...
