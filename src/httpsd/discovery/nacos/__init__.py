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
"""Nacos directory-cache discoverer."""

from httpsd.discovery.nacos.cache import TargetGroupCache
from httpsd.discovery.nacos.client import NacosNamingClient, ServiceList
from httpsd.discovery.nacos.discovery import NacosDiscovery, build_nacos_discovery
from httpsd.discovery.nacos.filter import ServiceFilter

__all__ = [
    "NacosDiscovery",
    "NacosNamingClient",
    "ServiceFilter",
    "ServiceList",
    "TargetGroupCache",
    "build_nacos_discovery",
]
