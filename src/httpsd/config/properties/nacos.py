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
"""Nacos discoverer configuration properties."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from httpsd.core.config import config_properties


@config_properties(prefix="httpsd.nacos")
class NacosDiscoveryProperties(BaseModel):
    """Configuration for the Nacos directory discoverer (httpsd.nacos.*)."""

    addresses: list[str] = Field(default_factory=list)
    port: int = Field(default=8848, ge=1, le=65535)
    username: str = ""
    password: str = ""
    namespace: str = ""
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    interval: float = Field(default=60.0, gt=0)
    cache_ttl: float | None = Field(default=None, gt=0)
    timeout: float = Field(default=10.0, gt=0)
    quiet: bool = True

    @field_validator("addresses", "include", "exclude", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def effective_cache_ttl(self) -> float:
        """Entry time-to-live; twice the poll interval unless configured."""
        return self.cache_ttl if self.cache_ttl is not None else self.interval * 2
