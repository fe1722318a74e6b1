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
"""Name -> transformer registry, populated by the composition root."""

from __future__ import annotations

import logging

from httpsd.kernel.exceptions import RegistrationException
from httpsd.transformer.types import Transformer

logger = logging.getLogger(__name__)


class TransformerRegistry:
    """Explicit registry of transformer instances.

    Registration order is preserved and a name can only be registered once.
    """

    def __init__(self) -> None:
        self._transformers: dict[str, Transformer] = {}

    def register(self, transformer: Transformer) -> None:
        """Register *transformer* under its own name."""
        name = transformer.name
        if name in self._transformers:
            raise RegistrationException(
                f"already registered transformer {name}",
                code="DUPLICATE_TRANSFORMER",
                context={"name": name},
            )
        self._transformers[name] = transformer
        logger.debug("Registered transformer %s", name)

    def get(self, name: str) -> Transformer | None:
        """Return the transformer registered as *name*, or None."""
        return self._transformers.get(name)

    def names(self) -> list[str]:
        return list(self._transformers)

    def __contains__(self, name: object) -> bool:
        return name in self._transformers

    def __len__(self) -> int:
        return len(self._transformers)
