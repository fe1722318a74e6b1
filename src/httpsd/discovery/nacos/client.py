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
"""Async client for the Nacos naming-service open API (v1)."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from httpsd import USER_AGENT
from httpsd.kernel.exceptions import ConfigurationException, DirectoryException
from httpsd.transformer.nacos import INSTANCE_LIST_PATH, NacosService

logger = logging.getLogger(__name__)

SERVICE_LIST_PATH = "/nacos/v1/ns/service/list"
LOGIN_PATH = "/nacos/v1/auth/login"

PAGE_SIZE = 256

DEFAULT_TOKEN_TTL = 18000


class ServiceList(BaseModel):
    """One page of the service-list API."""

    count: int = 0
    doms: list[str] = Field(default_factory=list)


class NacosNamingClient:
    """Lists services and queries their instances.

    Requests rotate over the configured servers; a failed request is
    reported to the caller and never retried against another server.
    When a username is configured, an access token is obtained through the
    login API and reused until its TTL elapses.
    """

    def __init__(
        self,
        addresses: list[str],
        port: int = 8848,
        namespace: str = "",
        username: str = "",
        password: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not addresses:
            raise ConfigurationException("at least one nacos server address is required", code="NACOS_ADDRESS")
        self.servers = [self._server_url(address, port) for address in addresses]
        self.namespace = namespace
        self._server_cycle = itertools.cycle(self.servers)
        self._username = username
        self._password = password
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._login_lock = asyncio.Lock()
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            transport=transport,
        )

    @staticmethod
    def _server_url(address: str, port: int) -> str:
        if "://" in address:
            return address.rstrip("/")
        return f"http://{address}:{port}"

    async def list_services(self, page_no: int, page_size: int = PAGE_SIZE) -> ServiceList:
        data = await self._get(
            SERVICE_LIST_PATH,
            {"pageNo": page_no, "pageSize": page_size, "namespaceId": self.namespace},
        )
        try:
            return ServiceList.model_validate(data)
        except ValidationError as exc:
            raise DirectoryException(f"malformed service list: {exc}", code="NACOS_MALFORMED") from exc

    async def list_all_services(self) -> list[str]:
        """Page through the service list until the reported count is reached."""
        services: list[str] = []
        page_no = 1
        while True:
            page = await self.list_services(page_no)
            services.extend(page.doms)
            if len(services) >= page.count or not page.doms:
                break
            page_no += 1
        return services

    async def get_service(
        self,
        service_name: str,
        *,
        group_name: str = "",
        clusters: str = "",
        healthy_only: bool = False,
        namespace_id: str | None = None,
    ) -> NacosService:
        """Query the instance list of one service."""
        params: dict[str, Any] = {
            "serviceName": service_name,
            "namespaceId": namespace_id if namespace_id is not None else self.namespace,
            "healthyOnly": "true" if healthy_only else "false",
        }
        if group_name:
            params["groupName"] = group_name
        if clusters:
            params["clusters"] = clusters
        data = await self._get(INSTANCE_LIST_PATH, params)
        try:
            return NacosService.model_validate(data)
        except ValidationError as exc:
            raise DirectoryException(
                f"malformed instance list for {service_name}: {exc}",
                code="NACOS_MALFORMED",
                context={"service": service_name},
            ) from exc

    async def close(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        server = next(self._server_cycle)
        token = await self._access_token(server)
        if token:
            params = {**params, "accessToken": token}
        url = f"{server}{path}"
        logger.debug("GET %s %s", url, {k: v for k, v in params.items() if k != "accessToken"})
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise DirectoryException(f"request to {url} failed: {exc!r}", code="NACOS_REQUEST") from exc
        if response.status_code != httpx.codes.OK:
            raise DirectoryException(
                f"nacos returned HTTP status {response.status_code}: {response.text[:200]}",
                code="NACOS_STATUS",
                context={"url": url, "status": response.status_code},
            )
        try:
            return response.json()
        except ValueError as exc:
            raise DirectoryException(f"nacos returned invalid JSON from {url}", code="NACOS_MALFORMED") from exc

    async def _access_token(self, server: str) -> str | None:
        if not self._username:
            return None
        async with self._login_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token
            url = f"{server}{LOGIN_PATH}"
            try:
                response = await self._client.post(
                    url, data={"username": self._username, "password": self._password}
                )
            except httpx.HTTPError as exc:
                raise DirectoryException(f"login to {url} failed: {exc!r}", code="NACOS_LOGIN") from exc
            if response.status_code != httpx.codes.OK:
                raise DirectoryException(
                    f"login to {url} returned HTTP status {response.status_code}",
                    code="NACOS_LOGIN",
                )
            try:
                payload = response.json()
                token = payload["accessToken"]
            except (ValueError, KeyError, TypeError) as exc:
                raise DirectoryException(f"login to {url} returned no access token", code="NACOS_LOGIN") from exc
            ttl = float(payload.get("tokenTtl") or DEFAULT_TOKEN_TTL)
            self._token = str(token)
            self._token_expires_at = time.monotonic() + ttl * 0.9
            logger.info("Obtained nacos access token from %s", server)
            return self._token
