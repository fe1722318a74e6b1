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
"""Nacos discoverer: background polling into a per-service cache.

One long-lived task owns all cache writes made by polling. Each cycle lists
the services of the namespace, filters them, fetches every survivor
concurrently and stores the result. A failure in any fetch cancels the rest
of the cycle; the next tick starts over. Reads are served from the cache.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from datetime import timedelta
from typing import Any

import httpx

from httpsd.config.properties.nacos import NacosDiscoveryProperties
from httpsd.core.config import Config
from httpsd.discovery.nacos.cache import TargetGroupCache
from httpsd.discovery.nacos.client import NacosNamingClient
from httpsd.discovery.nacos.filter import ServiceFilter
from httpsd.logging import get_logger
from httpsd.observability.metrics import MetricsRegistry
from httpsd.targetgroup import TargetGroup, group_target_groups
from httpsd.transformer.nacos import service_to_target_groups

NAME = "nacos"

_TRUE_VALUES = ("1", "t", "true", "yes")

FILTER_PARAMS = ("groupName", "clusters", "healthyOnly", "namespaceId")


class NacosDiscovery:
    """Directory-backed discoverer serving target groups from a cache.

    Usage::

        discovery = NacosDiscovery(client, service_filter=ServiceFilter(), ...)
        await discovery.start()
        groups = await discovery.refresh(httpx.QueryParams())
        await discovery.stop()
    """

    def __init__(
        self,
        client: NacosNamingClient,
        *,
        service_filter: ServiceFilter,
        cache: TargetGroupCache,
        interval: timedelta,
        metrics: MetricsRegistry,
        logger: Any = None,
    ) -> None:
        self._client = client
        self._filter = service_filter
        self._cache = cache
        self._interval = interval
        self._logger = (logger if logger is not None else get_logger(__name__)).bind(discoverer=NAME)
        self._lock = asyncio.Lock()
        self._triggers: asyncio.Queue[None] = asyncio.Queue(maxsize=1)
        self._task: asyncio.Task[None] | None = None
        self._duration = metrics.histogram(
            "httpsd_nacos_refresh_duration_seconds",
            "Duration of nacos service discovery, per service ('all' for listing)",
            labels=["service"],
        )
        self._failures = metrics.counter(
            "httpsd_nacos_refresh_failures_total",
            "Number of failed nacos refresh cycles and lookups",
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Launch the background sync task; a first refresh is queued immediately."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="httpsd-nacos-sync")

    async def stop(self) -> None:
        """Cancel the sync task (abandoning any in-flight cycle) and close the client."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self._client.close()

    def trigger(self) -> bool:
        """Request a refresh cycle. Returns False if one is already pending."""
        try:
            self._triggers.put_nowait(None)
        except asyncio.QueueFull:
            return False
        return True

    async def _run(self) -> None:
        self.trigger()
        async with asyncio.TaskGroup() as group:
            group.create_task(self._tick())
            group.create_task(self._consume())

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._interval.total_seconds())
            self.trigger()

    async def _consume(self) -> None:
        while True:
            await self._triggers.get()
            try:
                await self.refresh_all()
            except Exception as exc:
                self._failures.inc()
                self._logger.error("refreshing target groups failed", error=str(exc), exc_info=exc)

    async def refresh_all(self) -> list[str]:
        """Run one refresh cycle and return the names of the refreshed services."""
        async with self._lock:
            self._logger.debug("refreshing targetgroups in cache")
            services = await self._list_services()
            try:
                async with asyncio.TaskGroup() as group:
                    for service in services:
                        group.create_task(self._refresh_service(service))
            except ExceptionGroup as eg:
                raise eg.exceptions[0] from None
            finally:
                # the listing succeeded, so anything it no longer names is gone
                removed = await self._cache.retain(services)
                if removed:
                    self._logger.info("dropped vanished services", services=removed)
            self._logger.debug("refreshed targetgroups in cache", services=len(services))
            return services

    async def _list_services(self) -> list[str]:
        start = time.perf_counter()
        services = self._filter.apply(await self._client.list_all_services())
        self._duration.labels(service="all").observe(time.perf_counter() - start)
        return services

    async def _refresh_service(self, service: str) -> None:
        start = time.perf_counter()
        groups = service_to_target_groups(await self._client.get_service(service))
        self._duration.labels(service=service).observe(time.perf_counter() - start)
        await self._cache.put(service, groups)

    async def _fetch_service(self, service: str, params: httpx.QueryParams) -> list[TargetGroup]:
        namespace_id = params.get("namespaceId")
        result = await self._client.get_service(
            service,
            group_name=params.get("groupName", ""),
            clusters=params.get("clusters", ""),
            healthy_only=params.get("healthyOnly", "").lower() in _TRUE_VALUES,
            namespace_id=namespace_id or None,
        )
        return service_to_target_groups(result)

    async def refresh(self, params: httpx.QueryParams) -> list[TargetGroup]:
        """Serve one service (``serviceName``) or the union of every cached service.

        A requested service missing from the cache is fetched synchronously
        and stored before being returned. Requests carrying any of
        FILTER_PARAMS always go to the directory and are never cached; the
        cache holds unfiltered instance lists only.
        """
        try:
            service = params.get("serviceName")
            if service and any(params.get(key) for key in FILTER_PARAMS):
                groups = await self._fetch_service(service, params)
                source_prefix = service
            elif service:
                groups = await self._cache.get(service)
                if groups is None:
                    groups = await self._fetch_service(service, params)
                    async with self._lock:
                        await self._cache.put(service, groups)
                source_prefix = service
            else:
                async with self._lock:
                    groups = [group for _, entry in await self._cache.items() for group in entry]
                source_prefix = NAME
            result = group_target_groups(groups)
        except Exception:
            self._failures.inc()
            raise

        for index, group in enumerate(result):
            group.source = f"{source_prefix}:{index}"
        return result


def build_nacos_discovery(
    config: Config,
    metrics: MetricsRegistry,
    logger: Any = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> NacosDiscovery:
    """Validate ``httpsd.nacos`` settings and build a NacosDiscovery."""
    props = config.bind(NacosDiscoveryProperties)
    log = logger if logger is not None else get_logger(__name__)
    if not props.namespace:
        log.warning("nacos namespace is missing, falling back to the 'public' namespace")

    client = NacosNamingClient(
        props.addresses,
        port=props.port,
        namespace=props.namespace,
        username=props.username,
        password=props.password,
        timeout=props.timeout,
        transport=transport,
    )
    return NacosDiscovery(
        client,
        service_filter=ServiceFilter(include=props.include, exclude=props.exclude),
        cache=TargetGroupCache(ttl=timedelta(seconds=props.effective_cache_ttl)),
        interval=timedelta(seconds=props.interval),
        metrics=metrics,
        logger=log,
    )
