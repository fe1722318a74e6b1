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
"""HTTP discoverer: fetch a JSON endpoint per request and transform it.

Every call to :meth:`HttpDiscovery.refresh` performs a live upstream request;
nothing is cached and nothing is retried.
"""

from __future__ import annotations

import asyncio
import contextlib
import re
import ssl
import time
from typing import Any

import httpx

from httpsd import USER_AGENT
from httpsd.config.properties.http import HttpDiscoveryProperties, TlsProperties
from httpsd.core.config import Config
from httpsd.kernel.exceptions import (
    ConfigurationException,
    UnknownTransformerException,
    UnsupportedContentTypeException,
    UpstreamRequestException,
    UpstreamStatusException,
)
from httpsd.logging import get_logger
from httpsd.observability.metrics import MetricsRegistry
from httpsd.targetgroup import TargetGroup, group_target_groups
from httpsd.transformer.registry import TransformerRegistry

NAME = "http"

DEFAULT_TRANSFORMER = "asitis"

# Parameters consumed by the adapter itself; never forwarded upstream.
ADAPTER_PARAMS = ("pretty", "transformer")

_MATCH_CONTENT_TYPE = re.compile(r'^application/json(;\s*charset=("utf-8"|utf-8))?$', re.IGNORECASE)


def is_json_content_type(value: str) -> bool:
    """True for ``application/json`` optionally followed by ``; charset=utf-8``."""
    return bool(_MATCH_CONTENT_TYPE.match(value.strip()))


def url_source(url: str, index: int) -> str:
    """Source id of the index-th target group served for *url*."""
    return f"{url}:{index}"


class HttpDiscovery:
    """Discoverer backed by a plain HTTP endpoint returning JSON.

    The transformer is picked per request with the ``transformer`` query
    parameter (``asitis`` by default); remaining parameters are forwarded to
    the upstream URL. The shared ``httpx.AsyncClient`` carries timeout,
    authentication and TLS settings.
    """

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient,
        transformers: TransformerRegistry,
        metrics: MetricsRegistry,
        logger: Any = None,
    ) -> None:
        self.url = url
        self._client = client
        self._transformers = transformers
        self._logger = logger if logger is not None else get_logger(__name__)
        self._logger = self._logger.bind(discoverer=NAME)
        self._duration = metrics.histogram(
            "httpsd_http_refresh_duration_seconds",
            "Duration of HTTP service discovery refreshes",
        )
        self._failures = metrics.counter(
            "httpsd_http_refresh_failures_total",
            "Number of failed HTTP service discovery refreshes",
        )

    async def start(self) -> None:
        """No-op -- the HTTP discoverer keeps no background state."""

    async def stop(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def refresh(self, params: httpx.QueryParams) -> list[TargetGroup]:
        """Fetch, validate and transform the upstream response."""
        start = time.perf_counter()
        try:
            return await self._refresh(params)
        except (Exception, asyncio.CancelledError):
            self._failures.inc()
            raise
        finally:
            self._duration.observe(time.perf_counter() - start)

    async def _refresh(self, params: httpx.QueryParams) -> list[TargetGroup]:
        name = params.get("transformer") or DEFAULT_TRANSFORMER
        transformer = self._transformers.get(name)
        if transformer is None:
            raise UnknownTransformerException(
                f"unknown transformer {name}",
                code="UNKNOWN_TRANSFORMER",
                context={"name": name, "available": self._transformers.names()},
            )

        forwarded = params
        for key in ADAPTER_PARAMS:
            forwarded = forwarded.remove(key)
        target_url = transformer.build_target_url(self.url, forwarded)

        request = self._client.build_request(
            transformer.http_method,
            target_url,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )
        self._logger.debug("fetching targets", url=target_url, transformer=name)
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise UpstreamRequestException(
                f"request to {target_url} failed: {exc!r}",
                code="UPSTREAM_REQUEST",
                context={"url": target_url},
            ) from exc

        try:
            body = await self._read_body(response, target_url)
        finally:
            await _drain(response)

        groups = group_target_groups(transformer.transform(body))
        for index, group in enumerate(groups):
            group.source = url_source(self.url, index)
        return groups

    @staticmethod
    async def _read_body(response: httpx.Response, target_url: str) -> bytes:
        if response.status_code != httpx.codes.OK:
            raise UpstreamStatusException(
                f"server returned HTTP status {response.status_code} {response.reason_phrase}".rstrip(),
                status_code=response.status_code,
                context={"url": target_url},
            )

        content_type = response.headers.get("Content-Type", "")
        if not is_json_content_type(content_type):
            raise UnsupportedContentTypeException(
                f"unsupported content type {content_type!r}",
                code="UNSUPPORTED_CONTENT_TYPE",
                context={"url": target_url},
            )

        try:
            return await response.aread()
        except httpx.HTTPError as exc:
            raise UpstreamRequestException(
                f"reading response from {target_url} failed: {exc!r}",
                code="UPSTREAM_REQUEST",
                context={"url": target_url},
            ) from exc


async def _drain(response: httpx.Response) -> None:
    """Consume whatever is left of the body so the connection can be reused."""
    if not response.is_stream_consumed:
        with contextlib.suppress(httpx.HTTPError):
            async for _ in response.aiter_raw():
                pass
    await response.aclose()


def _ssl_verify(tls: TlsProperties) -> ssl.SSLContext | bool:
    if tls.insecure_skip_verify and not tls.cert_file:
        return False
    try:
        context = ssl.create_default_context(cafile=tls.ca_file)
        if tls.insecure_skip_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        if tls.cert_file:
            context.load_cert_chain(tls.cert_file, tls.key_file)
    except (OSError, ssl.SSLError) as exc:
        raise ConfigurationException(f"invalid TLS configuration: {exc}", code="TLS_INVALID") from exc
    return context


def build_http_discovery(
    config: Config,
    metrics: MetricsRegistry,
    logger: Any = None,
    *,
    transformers: TransformerRegistry,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpDiscovery:
    """Validate ``httpsd.http`` settings and build an HttpDiscovery.

    Raises ConfigurationException when the settings are unusable.
    """
    props = config.bind(HttpDiscoveryProperties)
    props.validate_url()

    auth = None
    if props.basic_auth is not None:
        auth = httpx.BasicAuth(props.basic_auth.username, props.basic_auth.password)

    client = httpx.AsyncClient(
        timeout=props.timeout,
        auth=auth,
        verify=_ssl_verify(props.tls),
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )
    return HttpDiscovery(props.url, client, transformers, metrics, logger)
