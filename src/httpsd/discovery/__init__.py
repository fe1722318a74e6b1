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
"""Discoverers: turn a backing source into target groups on request."""

from httpsd.discovery.http import HttpDiscovery, build_http_discovery
from httpsd.discovery.nacos import NacosDiscovery, build_nacos_discovery
from httpsd.discovery.registry import DiscovererRegistry
from httpsd.discovery.types import Discoverer, DiscovererFactory

__all__ = [
    "Discoverer",
    "DiscovererFactory",
    "DiscovererRegistry",
    "HttpDiscovery",
    "NacosDiscovery",
    "build_http_discovery",
    "build_nacos_discovery",
]
