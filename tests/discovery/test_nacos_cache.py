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
"""Tests for the Nacos service filter and target-group cache."""

import asyncio
from datetime import timedelta

import pytest

from httpsd.discovery.nacos import ServiceFilter, TargetGroupCache
from httpsd.kernel.exceptions import ConfigurationException
from httpsd.targetgroup import TargetGroup


class TestServiceFilter:
    def test_no_patterns_allows_everything(self):
        assert ServiceFilter().apply(["a", "b"]) == ["a", "b"]

    def test_exclude_wins_over_include(self):
        service_filter = ServiceFilter(include=["^prod-"], exclude=["^test-"])
        assert service_filter.apply(["prod-a", "test-b", "other-c"]) == ["prod-a"]

    def test_include_requires_any_match(self):
        service_filter = ServiceFilter(include=["^prod-", "^stage-"])
        assert service_filter.apply(["prod-a", "stage-b", "dev-c"]) == ["prod-a", "stage-b"]

    def test_unanchored_patterns_match_anywhere(self):
        assert not ServiceFilter(exclude=["canary"]).allows("orders-canary-v2")

    def test_empty_patterns_are_ignored(self):
        assert ServiceFilter(include=[""]).allows("anything")

    def test_invalid_pattern(self):
        with pytest.raises(ConfigurationException) as exc_info:
            ServiceFilter(include=["("])
        assert exc_info.value.code == "INVALID_PATTERN"


def _groups(address: str) -> list[TargetGroup]:
    return [TargetGroup(targets=[{"__address__": address}])]


class TestTargetGroupCache:
    @pytest.mark.asyncio
    async def test_put_and_get(self):
        cache = TargetGroupCache()
        groups = _groups("a:1")
        await cache.put("orders", groups)
        assert await cache.get("orders") is groups
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_entries_expire(self):
        cache = TargetGroupCache(ttl=timedelta(milliseconds=20))
        await cache.put("orders", _groups("a:1"))
        await asyncio.sleep(0.05)
        assert await cache.get("orders") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_retain_drops_vanished_services(self):
        cache = TargetGroupCache()
        for name in ("a", "b", "c"):
            await cache.put(name, _groups(f"{name}:1"))
        removed = await cache.retain(["a", "c"])
        assert removed == ["b"]
        assert [name for name, _ in await cache.items()] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_items_sorted_by_name(self):
        cache = TargetGroupCache()
        for name in ("zeta", "alpha", "mid"):
            await cache.put(name, _groups(f"{name}:1"))
        assert [name for name, _ in await cache.items()] == ["alpha", "mid", "zeta"]
