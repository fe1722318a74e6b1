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
"""Include/exclude policy applied to directory entry names."""

from __future__ import annotations

import re
from collections.abc import Iterable

from httpsd.kernel.exceptions import ConfigurationException


def _compile(patterns: Iterable[str], kind: str) -> list[re.Pattern[str]]:
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        if not pattern:
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ConfigurationException(
                f"invalid {kind} pattern {pattern!r}: {exc}",
                code="INVALID_PATTERN",
                context={"pattern": pattern},
            ) from exc
    return compiled


class ServiceFilter:
    """Regex allow/deny policy.

    A name is rejected if it matches any exclude pattern. Otherwise, when
    include patterns exist, it must match at least one of them. Patterns are
    searched anywhere in the name; anchor them with ``^``/``$`` as needed.
    """

    def __init__(self, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> None:
        self._include = _compile(include, "include")
        self._exclude = _compile(exclude, "exclude")

    def allows(self, name: str) -> bool:
        if any(pattern.search(name) for pattern in self._exclude):
            return False
        if self._include and not any(pattern.search(name) for pattern in self._include):
            return False
        return True

    def apply(self, names: Iterable[str]) -> list[str]:
        return [name for name in names if self.allows(name)]
