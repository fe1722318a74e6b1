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
"""Name -> discoverer factory registry."""

from __future__ import annotations

import logging
from typing import Any

from httpsd.core.config import Config
from httpsd.discovery.types import Discoverer, DiscovererFactory
from httpsd.kernel.exceptions import RegistrationException, UnknownDiscovererException
from httpsd.observability.metrics import MetricsRegistry

logger = logging.getLogger(__name__)


class DiscovererRegistry:
    """Explicit registry of discoverer factories, kept in registration order."""

    def __init__(self) -> None:
        self._factories: dict[str, DiscovererFactory] = {}

    def register(self, name: str, factory: DiscovererFactory) -> None:
        if name in self._factories:
            raise RegistrationException(
                f"already registered discoverer {name}",
                code="DUPLICATE_DISCOVERER",
                context={"name": name},
            )
        self._factories[name] = factory
        logger.debug("Registered discoverer %s", name)

    def names(self) -> list[str]:
        return list(self._factories)

    def build(self, name: str, config: Config, metrics: MetricsRegistry, log: Any) -> Discoverer:
        """Instantiate the discoverer registered as *name*.

        Configuration problems surface here as ConfigurationException.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise UnknownDiscovererException(
                f"unknown discoverer {name}",
                code="UNKNOWN_DISCOVERER",
                context={"name": name, "available": self.names()},
            )
        return factory(config, metrics, log)
