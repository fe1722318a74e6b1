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
"""Process-wide log setup: structlog rendering on top of stdlib logging."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from httpsd.config.properties.nacos import NacosDiscoveryProperties
from httpsd.core.config import Config
from httpsd.kernel.exceptions import ConfigurationException

FORMATS = ("console", "json")

QUIET_LOGGERS = ("httpsd.discovery.nacos.client",)

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _level_name(value: object) -> str:
    name = str(value).upper()
    if name not in logging.getLevelNamesMapping():
        raise ConfigurationException(f"unknown log level {value!r}", code="LOG_LEVEL")
    return name


class StructlogAdapter:
    """Applies the ``httpsd.logging`` section and the nacos ``quiet`` flag.

    ``httpsd.logging.level.root`` sets the root level; every other key under
    ``httpsd.logging.level`` names a logger. ``httpsd.logging.format`` picks
    the console or JSON renderer. While ``httpsd.nacos.quiet`` is set, the
    naming client's per-request lines are dropped.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream
        self.root_level = "INFO"
        self.levels: dict[str, str] = {}
        self.format = "console"
        self.quiet = True

    def configure(self, config: Config) -> None:
        levels = dict(config.get_section("httpsd.logging.level"))
        self.root_level = _level_name(levels.pop("root", "INFO"))
        self.levels = {name: _level_name(level) for name, level in levels.items()}
        self.format = str(config.get("httpsd.logging.format", "console")).lower()
        if self.format not in FORMATS:
            raise ConfigurationException(
                f"unknown log format {self.format!r}, expected one of {', '.join(FORMATS)}",
                code="LOG_FORMAT",
            )
        self.quiet = config.bind(NacosDiscoveryProperties).quiet

        structlog.configure(
            processors=[*_SHARED_PROCESSORS, self._renderer()],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=self._stream or sys.stderr,
            level=self.root_level,
            force=True,
        )
        for name, level in self.levels.items():
            logging.getLogger(name).setLevel(level)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).disabled = self.quiet

    def _renderer(self) -> structlog.types.Processor:
        if self.format == "json":
            return structlog.processors.JSONRenderer()
        return structlog.dev.ConsoleRenderer()
