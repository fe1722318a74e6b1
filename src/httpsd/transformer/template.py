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
"""Reshape arbitrary upstream JSON into a target-group array.

Two mutually exclusive modes are supported:

- ``jinja``: a Jinja2 template rendered in a sandbox. The decoded response is
  available as ``data``; when it is an object, its keys are also top-level
  variables. The rendered text must be a JSON array.
- ``jsonpath``: a jsonpath-ng expression selecting the array (or its items).
"""

from __future__ import annotations

import json
from typing import Any

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment
from jsonpath_ng import parse as jsonpath_parse  # type: ignore[import-untyped]
from jsonpath_ng.exceptions import JSONPathError  # type: ignore[import-untyped]

from httpsd.kernel.exceptions import ConfigurationException, TransformException


class Template:
    """A compiled reshaping template.

    Templates are compiled once at construction, so syntax errors surface as
    ConfigurationException at start-up rather than on the first request.
    """

    def __init__(self, jinja: str = "", jsonpath: str = "") -> None:
        if jinja and jsonpath:
            raise ConfigurationException(
                "only one of 'jinja' or 'jsonpath' may be configured",
                code="TEMPLATE_AMBIGUOUS",
            )
        self.jinja = jinja
        self.jsonpath = jsonpath
        self._compiled_jinja = None
        self._compiled_jsonpath = None
        try:
            if jinja:
                env = SandboxedEnvironment(autoescape=False)
                self._compiled_jinja = env.from_string(jinja)
            elif jsonpath:
                self._compiled_jsonpath = jsonpath_parse(jsonpath)
        except (TemplateError, JSONPathError) as exc:
            raise ConfigurationException(f"invalid template: {exc}", code="TEMPLATE_INVALID") from exc

    @property
    def enabled(self) -> bool:
        return bool(self.jinja or self.jsonpath)

    def execute(self, data: Any) -> Any:
        """Apply the template to decoded JSON and return the reshaped value."""
        if self._compiled_jinja is not None:
            variables: dict[str, Any] = dict(data) if isinstance(data, dict) else {}
            variables["data"] = data
            try:
                rendered = self._compiled_jinja.render(**variables)
            except TemplateError as exc:
                raise TransformException(f"template rendering failed: {exc}") from exc
            try:
                return json.loads(rendered)
            except json.JSONDecodeError as exc:
                raise TransformException(f"template output is not valid JSON: {exc}") from exc

        if self._compiled_jsonpath is not None:
            matches = [match.value for match in self._compiled_jsonpath.find(data)]
            if len(matches) == 1 and isinstance(matches[0], list):
                return matches[0]
            return matches

        return data
