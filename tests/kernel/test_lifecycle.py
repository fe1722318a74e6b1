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
"""Tests for the Lifecycle protocol and how the application applies it."""

import httpx
import pytest

from httpsd.core.application import HttpSdApplication
from httpsd.core.config import Config
from httpsd.discovery import HttpDiscovery
from httpsd.kernel import Lifecycle
from httpsd.observability.metrics import MetricsRegistry
from httpsd.transformer import TransformerRegistry


class StaticDiscoverer:
    """Discoverer without start/stop."""

    async def refresh(self, params: httpx.QueryParams) -> list:
        return []


class RecordingDiscoverer(StaticDiscoverer):
    def __init__(self, events: list[str], name: str) -> None:
        self.events = events
        self.name = name

    async def start(self) -> None:
        self.events.append(f"start {self.name}")

    async def stop(self) -> None:
        self.events.append(f"stop {self.name}")


class TestLifecycle:
    def test_http_discovery_conforms(self):
        discovery = HttpDiscovery("http://upstream.local", httpx.AsyncClient(), TransformerRegistry(), MetricsRegistry())
        assert isinstance(discovery, Lifecycle)

    def test_partial_implementation_does_not_conform(self):
        class OnlyStart:
            async def start(self) -> None:
                pass

        assert not isinstance(OnlyStart(), Lifecycle)
        assert not isinstance(StaticDiscoverer(), Lifecycle)


class TestApplicationLifecycle:
    @pytest.mark.asyncio
    async def test_starts_in_order_and_stops_in_reverse(self):
        app = HttpSdApplication(Config({"httpsd": {"http": {"url": "http://upstream.local/sd"}}}))
        events: list[str] = []
        app.discoverers = {
            "first": RecordingDiscoverer(events, "first"),
            "static": StaticDiscoverer(),
            "second": RecordingDiscoverer(events, "second"),
        }

        await app.start()
        await app.stop()

        assert events == ["start first", "start second", "stop second", "stop first"]
