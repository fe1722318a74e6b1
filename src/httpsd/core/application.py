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
"""Composition root: builds the plugin registries and the configured discoverers."""

from __future__ import annotations

import functools
from typing import Any

import httpx

from httpsd.config.properties.http import HttpDiscoveryProperties
from httpsd.core.config import Config
from httpsd.discovery.http import build_http_discovery
from httpsd.discovery.nacos.discovery import build_nacos_discovery
from httpsd.discovery.registry import DiscovererRegistry
from httpsd.discovery.types import Discoverer
from httpsd.kernel.exceptions import ConfigurationException, UnknownDiscovererException
from httpsd.kernel.lifecycle import Lifecycle
from httpsd.logging import get_logger
from httpsd.observability.metrics import MetricsRegistry
from httpsd.transformer.asitis import AsItIsTransformer
from httpsd.transformer.nacos import NacosTransformer
from httpsd.transformer.registry import TransformerRegistry
from httpsd.transformer.template import Template


def build_transformer_registry(config: Config) -> TransformerRegistry:
    """Register the shipped transformers: ``asitis`` first, then ``nacos``."""
    template_props = config.bind(HttpDiscoveryProperties).template
    registry = TransformerRegistry()
    registry.register(AsItIsTransformer(Template(jinja=template_props.jinja, jsonpath=template_props.jsonpath)))
    registry.register(NacosTransformer())
    return registry


def build_discoverer_registry(
    transformers: TransformerRegistry,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DiscovererRegistry:
    """Register the shipped discoverers: ``http`` first, then ``nacos``."""
    registry = DiscovererRegistry()
    registry.register(
        "http",
        functools.partial(build_http_discovery, transformers=transformers, transport=transport),
    )
    registry.register("nacos", functools.partial(build_nacos_discovery, transport=transport))
    return registry


def _discoverer_names(value: Any) -> list[str]:
    if isinstance(value, str):
        return [name.strip() for name in value.split(",") if name.strip()]
    return [str(name) for name in value or []]


class HttpSdApplication:
    """Owns the registries, the metrics registry and the live discoverers.

    Discoverers listed under ``httpsd.discoverers`` are built eagerly, so
    configuration errors abort start-up. The first one listed is the default.

    Usage::

        app = HttpSdApplication(Config.from_file("httpsd.yaml"))
        await app.start()
        groups = await app.get("http").refresh(httpx.QueryParams("job=node"))
        await app.stop()
    """

    def __init__(
        self,
        config: Config,
        metrics: MetricsRegistry | None = None,
        logger: Any = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.metrics = metrics if metrics is not None else MetricsRegistry()
        self._logger = logger if logger is not None else get_logger("httpsd")
        self.transformers = build_transformer_registry(config)
        self.registry = build_discoverer_registry(self.transformers, transport)

        names = _discoverer_names(config.get("httpsd.discoverers", ["http"]))
        if not names:
            raise ConfigurationException("no discoverer configured", code="NO_DISCOVERER")
        self.discoverers: dict[str, Discoverer] = {}
        for name in names:
            self.discoverers[name] = self.registry.build(name, config, self.metrics, self._logger)

    @property
    def default_name(self) -> str:
        return next(iter(self.discoverers))

    def get(self, name: str | None = None) -> Discoverer:
        """Return the discoverer called *name*, or the default one."""
        name = name or self.default_name
        discoverer = self.discoverers.get(name)
        if discoverer is None:
            raise UnknownDiscovererException(
                f"unknown discoverer {name}",
                code="UNKNOWN_DISCOVERER",
                context={"name": name, "available": list(self.discoverers)},
            )
        return discoverer

    async def start(self) -> None:
        """Start every discoverer implementing Lifecycle, in configuration order."""
        for name, discoverer in self.discoverers.items():
            if isinstance(discoverer, Lifecycle):
                await discoverer.start()
                self._logger.info("discoverer started", discoverer=name)

    async def stop(self) -> None:
        """Stop discoverers in reverse order; failures are logged, not raised."""
        for name, discoverer in reversed(self.discoverers.items()):
            if not isinstance(discoverer, Lifecycle):
                continue
            try:
                await discoverer.stop()
            except Exception:
                self._logger.exception("failed to stop discoverer", discoverer=name)
