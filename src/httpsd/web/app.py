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
"""Starlette application serving discovery results, health and metrics."""

from __future__ import annotations

import contextlib
import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from httpsd.core.application import HttpSdApplication
from httpsd.kernel.exceptions import HttpSdException
from httpsd.logging import get_logger

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

_TRUE_VALUES = ("1", "t", "true", "yes")

logger = get_logger(__name__)


def json_error(message: str, status_code: int = 500) -> Response:
    """Render ``{"error": message}`` and log it."""
    logger.error("discovery request failed", err=message)
    return Response(
        json.dumps({"error": message}),
        status_code=status_code,
        media_type=JSON_CONTENT_TYPE,
        headers={"X-Content-Type-Options": "nosniff"},
    )


def _render(payload: Any, pretty: bool) -> Response:
    body = json.dumps(payload, indent=2 if pretty else None) + "\n"
    return Response(body, media_type=JSON_CONTENT_TYPE)


def make_discovery_endpoint(application: HttpSdApplication):  # type: ignore[no-untyped-def]
    """Build the handler serving target groups for a (named or default) discoverer."""

    async def discover(request: Request) -> Response:
        params = httpx.QueryParams(request.query_params.multi_items())
        pretty = params.get("pretty", "").lower() in _TRUE_VALUES
        params = params.remove("pretty")
        try:
            discoverer = application.get(request.path_params.get("discoverer"))
            groups = await discoverer.refresh(params)
        except HttpSdException as exc:
            return json_error(str(exc))
        except Exception as exc:
            logger.exception("unexpected discovery failure")
            return json_error(str(exc) or type(exc).__name__)
        return _render([group.to_dict() for group in groups], pretty)

    return discover


def create_app(application: HttpSdApplication, path: str = "/") -> Starlette:
    """Create the Starlette app.

    Routes:
    - ``GET <path>``: target groups from the default discoverer
    - ``GET <path>/{discoverer}``: target groups from a named discoverer
    - ``GET /-/healthy``: liveness probe
    - ``GET /metrics``: Prometheus exposition of the application registry
    """
    base = "/" + path.strip("/")
    discover = make_discovery_endpoint(application)

    async def healthy(request: Request) -> Response:
        return PlainTextResponse("Healthy")

    async def metrics(request: Request) -> Response:
        return Response(generate_latest(application.metrics.registry), media_type=CONTENT_TYPE_LATEST)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await application.start()
        try:
            yield
        finally:
            await application.stop()

    named = f"{base.rstrip('/')}/{{discoverer}}"
    routes = [
        Route("/-/healthy", healthy, methods=["GET"]),
        Route("/metrics", metrics, methods=["GET"]),
        Route(base, discover, methods=["GET"]),
        Route(named, discover, methods=["GET"]),
    ]
    return Starlette(routes=routes, lifespan=lifespan)
