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
"""Well-known label names and label-name helpers."""

from __future__ import annotations

import re

ADDRESS_LABEL = "__address__"
META_LABEL_PREFIX = "__meta_"

_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_FORMALIZE_TABLE = str.maketrans({"-": "_", ".": "_"})


def formalize_label_name(name: str) -> str:
    """Replace ``-`` and ``.`` with ``_`` so *name* can be used in a label name."""
    return name.translate(_FORMALIZE_TABLE)


def is_valid_label_name(name: str) -> bool:
    return bool(_LABEL_NAME_RE.match(name))
