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
"""Exception hierarchy for httpsd.

All errors raised by the discovery core inherit from HttpSdException so the
outer web layer can map them to a single JSON error body.

Categories:
- ConfigurationException: invalid settings, detected at construction
- RegistrationException: a plugin name registered twice
- SelectionException: unknown transformer or discoverer requested at call time
- InvalidQueryException: a request is missing a parameter the plugin needs
- UpstreamException: anything that went wrong talking to the backing source
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class HttpSdException(Exception):
    """Base exception for all httpsd errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "UPSTREAM_STATUS").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Start-up Exceptions
# =============================================================================


class ConfigurationException(HttpSdException):
    """Settings failed validation; raised while building a discoverer."""


class RegistrationException(HttpSdException):
    """A transformer or discoverer name is already registered."""


# =============================================================================
# Request Exceptions
# =============================================================================


class SelectionException(HttpSdException):
    """The caller selected a plugin that does not exist."""


class UnknownTransformerException(SelectionException):
    """No transformer is registered under the requested name."""


class UnknownDiscovererException(SelectionException):
    """No discoverer is registered under the requested name."""


class InvalidQueryException(HttpSdException):
    """A query parameter required by the selected plugin is missing or invalid."""


# =============================================================================
# Upstream Exceptions
# =============================================================================


class UpstreamException(HttpSdException):
    """Failure fetching or interpreting data from the backing source."""


class UpstreamRequestException(UpstreamException):
    """Network-level failure or timeout; the httpx error is the __cause__."""


class UpstreamStatusException(UpstreamException):
    """The backing source answered with a status other than 200."""

    def __init__(self, message: str, status_code: int, context: dict | None = None) -> None:
        super().__init__(message, code="UPSTREAM_STATUS", context=context)
        self.status_code = status_code


class UnsupportedContentTypeException(UpstreamException):
    """The backing source answered with a media type other than JSON."""


class TransformException(UpstreamException):
    """The response body could not be turned into target groups."""


class NilTargetGroupException(UpstreamException):
    """A transform result contained an absent target group."""


class DirectoryException(UpstreamException):
    """The naming service rejected or failed a list, query or login call."""
