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
"""Logging: structlog configuration and logger lookup."""

from __future__ import annotations

from typing import Any

import structlog

from httpsd.logging.structlog_adapter import StructlogAdapter


def get_logger(name: str, **bindings: Any) -> structlog.stdlib.BoundLogger:
    """Get a structured logger by name, optionally pre-bound with key/values."""
    logger = structlog.get_logger(name)
    return logger.bind(**bindings) if bindings else logger


__all__ = ["StructlogAdapter", "get_logger"]
