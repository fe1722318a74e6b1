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
"""``asitis`` transformer: the upstream already speaks the target-group format."""

from __future__ import annotations

import json

import httpx

from httpsd.kernel.exceptions import TransformException
from httpsd.targetgroup import TargetGroup, parse_target_groups
from httpsd.transformer.template import Template


class AsItIsTransformer:
    """Decode the body as a JSON array of target groups.

    An optional Template reshapes arbitrary JSON into that array first.
    """

    def __init__(self, template: Template | None = None) -> None:
        self._template = template

    @property
    def name(self) -> str:
        return "asitis"

    @property
    def http_method(self) -> str:
        return "GET"

    def build_target_url(self, base_url: str, params: httpx.QueryParams) -> str:
        """Append the passthrough parameters to the query already in *base_url*."""
        url = httpx.URL(base_url)
        merged = list(url.params.multi_items()) + list(params.multi_items())
        return str(url.copy_with(params=httpx.QueryParams(merged)))

    def transform(self, body: bytes) -> list[TargetGroup | None]:
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise TransformException(f"malformed JSON response: {exc}", code="MALFORMED_JSON") from exc
        if self._template is not None and self._template.enabled:
            data = self._template.execute(data)
        return parse_target_groups(data)
