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
"""httpsd CLI: run the service discovery adapter."""

from __future__ import annotations

from typing import Any

import click
import uvicorn

from httpsd import __version__
from httpsd.config.properties.server import ServerProperties
from httpsd.core.application import HttpSdApplication
from httpsd.core.config import Config
from httpsd.kernel.exceptions import HttpSdException
from httpsd.logging import StructlogAdapter
from httpsd.web.app import create_app


@click.group()
@click.version_option(version=__version__, prog_name="httpsd")
def cli() -> None:
    """httpsd: convert HTTP and naming-service sources into Prometheus targets."""


def _apply_overrides(config: Config, overrides: dict[str, Any]) -> None:
    """Copy every option the user actually passed into the config tree."""
    for key, value in overrides.items():
        if value is None or value == ():
            continue
        config.set(key, list(value) if isinstance(value, tuple) else value)


def build_config(config_path: str | None, profiles: tuple[str, ...], overrides: dict[str, Any]) -> Config:
    config = Config.from_file(config_path, active_profiles=list(profiles))
    _apply_overrides(config, overrides)
    return config


@cli.command("serve")
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False), help="YAML or TOML config file.")
@click.option("--profile", "profiles", multiple=True, help="Config profile overlay to apply (repeatable).")
@click.option("--host", default=None, help="Bind address (default 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Listen port (default 8080).")
@click.option("--path", default=None, help="Path serving target groups (default /).")
@click.option("--log-level", default=None, help="Root log level.")
@click.option("--log-format", default=None, type=click.Choice(["console", "json"]), help="Log output format.")
@click.option("--discoverer", "discoverers", multiple=True, help="Discoverer to enable (repeatable); first is default.")
@click.option("--http.url", "http_url", default=None, help="URL to fetch and convert into target groups.")
@click.option("--http.basic-auth.username", "-u", "http_username", default=None, help="Username for basic auth.")
@click.option("--http.basic-auth.password", "-p", "http_password", default=None, help="Password for basic auth.")
@click.option("--nacos.address", "nacos_addresses", multiple=True, help="Nacos server address (repeatable).")
@click.option("--nacos.port", "nacos_port", default=None, type=int, help="Port of the nacos servers.")
@click.option("--nacos.namespace", "nacos_namespace", default=None, help="Namespace id of services.")
@click.option("--nacos.username", "nacos_username", default=None, help="Nacos username.")
@click.option("--nacos.password", "nacos_password", default=None, help="Nacos password.")
@click.option("--nacos.include", "nacos_include", multiple=True, help="Regex of service names to include (repeatable).")
@click.option("--nacos.exclude", "nacos_exclude", multiple=True, help="Regex of service names to exclude (repeatable).")
@click.option("--nacos.interval", "nacos_interval", default=None, type=float, help="Sync interval in seconds.")
@click.option("--nacos.quiet/--no-nacos.quiet", "nacos_quiet", default=None, help="Silence nacos client logging.")
def serve_command(
    config_path: str | None,
    profiles: tuple[str, ...],
    host: str | None,
    port: int | None,
    path: str | None,
    log_level: str | None,
    log_format: str | None,
    discoverers: tuple[str, ...],
    http_url: str | None,
    http_username: str | None,
    http_password: str | None,
    nacos_addresses: tuple[str, ...],
    nacos_port: int | None,
    nacos_namespace: str | None,
    nacos_username: str | None,
    nacos_password: str | None,
    nacos_include: tuple[str, ...],
    nacos_exclude: tuple[str, ...],
    nacos_interval: float | None,
    nacos_quiet: bool | None,
) -> None:
    """Start the discovery HTTP server."""
    overrides: dict[str, Any] = {
        "httpsd.server.host": host,
        "httpsd.server.port": port,
        "httpsd.server.path": path,
        "httpsd.logging.level.root": log_level,
        "httpsd.logging.format": log_format,
        "httpsd.discoverers": discoverers,
        "httpsd.http.url": http_url,
        "httpsd.nacos.addresses": nacos_addresses,
        "httpsd.nacos.port": nacos_port,
        "httpsd.nacos.namespace": nacos_namespace,
        "httpsd.nacos.username": nacos_username,
        "httpsd.nacos.password": nacos_password,
        "httpsd.nacos.include": nacos_include,
        "httpsd.nacos.exclude": nacos_exclude,
        "httpsd.nacos.interval": nacos_interval,
        "httpsd.nacos.quiet": nacos_quiet,
    }
    if http_username and http_password:
        overrides["httpsd.http.basic_auth"] = {"username": http_username, "password": http_password}

    try:
        config = build_config(config_path, profiles, overrides)
        StructlogAdapter().configure(config)
        server = config.bind(ServerProperties)
        application = HttpSdApplication(config)
    except HttpSdException as exc:
        raise click.ClickException(str(exc)) from exc

    app = create_app(application, path=server.path)
    uvicorn.run(app, host=server.host, port=server.port, log_level="warning")


@cli.command("version")
def version_command() -> None:
    """Print the httpsd version."""
    click.echo(f"httpsd {__version__}")
