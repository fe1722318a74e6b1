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
"""HTTP discoverer configuration properties."""

from __future__ import annotations

from urllib.parse import urlsplit

from pydantic import BaseModel, Field, model_validator

from httpsd.core.config import config_properties
from httpsd.kernel.exceptions import ConfigurationException


class BasicAuthProperties(BaseModel):
    """Credentials for HTTP basic authentication; both fields are required."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TlsProperties(BaseModel):
    """TLS client options for the upstream connection."""

    insecure_skip_verify: bool = False
    ca_file: str | None = None
    cert_file: str | None = None
    key_file: str | None = None

    @model_validator(mode="after")
    def _cert_and_key_together(self) -> TlsProperties:
        if bool(self.cert_file) != bool(self.key_file):
            raise ValueError("cert_file and key_file must be configured together")
        return self


class TemplateProperties(BaseModel):
    """Reshaping template for the asitis transformer; at most one mode."""

    jinja: str = ""
    jsonpath: str = ""

    @model_validator(mode="after")
    def _one_mode(self) -> TemplateProperties:
        if self.jinja and self.jsonpath:
            raise ValueError("only one of 'jinja' or 'jsonpath' may be configured")
        return self


@config_properties(prefix="httpsd.http")
class HttpDiscoveryProperties(BaseModel):
    """Configuration for the HTTP discoverer (httpsd.http.*)."""

    url: str = ""
    timeout: float = Field(default=60.0, gt=0)
    basic_auth: BasicAuthProperties | None = None
    tls: TlsProperties = Field(default_factory=TlsProperties)
    template: TemplateProperties = Field(default_factory=TemplateProperties)

    def validate_url(self) -> None:
        """Reject a missing URL, a scheme other than http(s) or an empty host."""
        if not self.url:
            raise ConfigurationException("URL is missing", code="URL_MISSING")
        parsed = urlsplit(self.url)
        if parsed.scheme not in ("http", "https"):
            raise ConfigurationException("URL scheme must be 'http' or 'https'", code="URL_SCHEME")
        if not parsed.hostname:
            raise ConfigurationException("host is missing in URL", code="URL_HOST")
