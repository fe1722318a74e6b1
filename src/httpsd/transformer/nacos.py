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
"""``nacos`` transformer: a naming-service instance list becomes target groups.

The conversion in :func:`service_to_target_groups` is shared with the
directory-cache discoverer, which fetches the same payload through the
naming client instead of the HTTP engine.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from httpsd.kernel.exceptions import InvalidQueryException, TransformException
from httpsd.targetgroup import ADDRESS_LABEL, META_LABEL_PREFIX, TargetGroup, formalize_label_name

NAME = "nacos"

INSTANCE_LIST_PATH = "/nacos/v1/ns/instance/list"

# Query parameters forwarded to the instance-list API, in the order they are sent.
PASSTHROUGH_PARAMS = ("serviceName", "groupName", "namespaceId", "clusters", "healthyOnly")


class NacosInstance(BaseModel):
    """One registered instance of a service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    instance_id: str = Field(default="", alias="instanceId")
    ip: str = ""
    port: int = 0
    weight: float = 0.0
    healthy: bool = False
    enabled: bool = False
    ephemeral: bool = False
    cluster_name: str = Field(default="", alias="clusterName")
    service_name: str = Field(default="", alias="serviceName")
    metadata: dict[str, str] = Field(default_factory=dict)


class NacosService(BaseModel):
    """Instance-list response of the naming service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    group_name: str = Field(default="", alias="groupName")
    clusters: str = ""
    cache_millis: int = Field(default=0, alias="cacheMillis")
    hosts: list[NacosInstance] = Field(default_factory=list)
    checksum: str = ""
    last_ref_time: int = Field(default=0, alias="lastRefTime")
    valid: bool = False
    all_ips: bool = Field(default=False, alias="allIPs")
    reach_protection_threshold: bool = Field(default=False, alias="reachProtectionThreshold")


def label_name(key: str, placeholder: str = "") -> str:
    """Build ``__meta_nacos<placeholder>_<key>`` with *key* formalized."""
    return f"{META_LABEL_PREFIX}{NAME}{placeholder}_{formalize_label_name(key)}"


def join_host_port(host: str, port: int) -> str:
    if ":" in host and not host.startswith("["):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def service_to_target_groups(service: NacosService) -> list[TargetGroup]:
    """Map every instance of *service* to its own target group."""
    groups: list[TargetGroup] = []
    for instance in service.hosts:
        labels = {
            label_name("cluster"): instance.cluster_name,
            label_name("service"): instance.service_name,
            label_name("group"): service.group_name,
        }
        for key, value in instance.metadata.items():
            labels[label_name(key, "_metadata")] = value
        groups.append(
            TargetGroup(
                targets=[{ADDRESS_LABEL: join_host_port(instance.ip, instance.port)}],
                labels=labels,
            )
        )
    return groups


class NacosTransformer:
    """Query the instance-list API of a naming service for a single service."""

    @property
    def name(self) -> str:
        return NAME

    @property
    def http_method(self) -> str:
        return "GET"

    def build_target_url(self, base_url: str, params: httpx.QueryParams) -> str:
        if not params.get("serviceName"):
            raise InvalidQueryException("serviceName is required", code="MISSING_SERVICE_NAME")
        query = httpx.QueryParams([(key, params[key]) for key in PASSTHROUGH_PARAMS if params.get(key)])
        return f"{base_url.rstrip('/')}{INSTANCE_LIST_PATH}?{query}"

    def transform(self, body: bytes) -> list[TargetGroup | None]:
        try:
            service = NacosService.model_validate_json(body)
        except ValidationError as exc:
            raise TransformException(f"malformed instance list: {exc}", code="MALFORMED_JSON") from exc
        return list(service_to_target_groups(service))
