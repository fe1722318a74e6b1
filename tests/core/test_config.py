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
"""Tests for the layered configuration."""

from pathlib import Path

import pytest
from pydantic import BaseModel

from httpsd.config.properties.http import HttpDiscoveryProperties
from httpsd.config.properties.nacos import NacosDiscoveryProperties
from httpsd.config.properties.server import ServerProperties
from httpsd.core.config import Config, config_properties
from httpsd.kernel.exceptions import ConfigurationException


class TestConfig:
    def test_get_nested_value(self):
        config = Config({"httpsd": {"server": {"port": 9090}}})
        assert config.get("httpsd.server.port") == 9090

    def test_get_with_default(self):
        assert Config({}).get("httpsd.missing", "default") == "default"

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("HTTPSD_HTTP_URL", "http://env.local/sd")
        config = Config({"httpsd": {"http": {"url": "http://file.local/sd"}}})
        assert config.get("httpsd.http.url") == "http://env.local/sd"

    def test_set_creates_sections(self):
        config = Config({})
        config.set("httpsd.nacos.addresses", ["10.0.0.1"])
        assert config.get("httpsd.nacos.addresses") == ["10.0.0.1"]

    def test_placeholder_from_env(self, monkeypatch):
        monkeypatch.setenv("NACOS_PASSWORD", "s3cret")
        config = Config({"httpsd": {"nacos": {"password": "${NACOS_PASSWORD}"}}})
        assert config.get("httpsd.nacos.password") == "s3cret"

    def test_placeholder_default(self):
        config = Config({"httpsd": {"nacos": {"namespace": "${HTTPSD_TEST_UNSET_NS:public}"}}})
        assert config.get("httpsd.nacos.namespace") == "public"

    def test_unresolvable_placeholder(self):
        config = Config({"httpsd": {"http": {"url": "${HTTPSD_TEST_UNSET_URL}"}}})
        with pytest.raises(ConfigurationException):
            config.get("httpsd.http.url")


class TestConfigFromFile:
    def test_defaults_are_loaded(self):
        config = Config.from_file()
        assert config.get("httpsd.server.port") == 8080
        assert config.get("httpsd.nacos.port") == 8848
        assert config.loaded_sources == ["httpsd-defaults.yaml (defaults)"]

    def test_yaml_file_overrides_defaults(self, tmp_path: Path):
        config_file = tmp_path / "httpsd.yaml"
        config_file.write_text("httpsd:\n  server:\n    port: 9090\n")
        config = Config.from_file(config_file)
        assert config.get("httpsd.server.port") == 9090
        assert config.get("httpsd.server.host") == "0.0.0.0"

    def test_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "httpsd.toml"
        config_file.write_text('[httpsd.http]\nurl = "http://upstream.local/sd"\n')
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("httpsd.http.url") == "http://upstream.local/sd"

    def test_profile_overlay(self, tmp_path: Path):
        (tmp_path / "httpsd.yaml").write_text("httpsd:\n  server:\n    port: 8080\n    path: /sd\n")
        (tmp_path / "httpsd-prod.yaml").write_text("httpsd:\n  server:\n    port: 80\n")
        config = Config.from_file(tmp_path / "httpsd.yaml", active_profiles=["prod", "absent"])
        assert config.get("httpsd.server.port") == 80
        assert config.get("httpsd.server.path") == "/sd"
        assert len(config.loaded_sources) == 3

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationException) as exc_info:
            Config.from_file(tmp_path / "nope.yaml")
        assert exc_info.value.code == "CONFIG_MISSING"

    def test_syntax_error(self, tmp_path: Path):
        config_file = tmp_path / "httpsd.yaml"
        config_file.write_text("httpsd: [unclosed\n")
        with pytest.raises(ConfigurationException) as exc_info:
            Config.from_file(config_file)
        assert exc_info.value.code == "CONFIG_SYNTAX"


class TestBind:
    def test_requires_decorator(self):
        class Plain(BaseModel):
            value: int = 0

        with pytest.raises(ConfigurationException):
            Config({}).bind(Plain)

    def test_custom_properties(self):
        @config_properties(prefix="custom")
        class CustomProperties(BaseModel):
            size: int = 5

        assert Config({"custom": {"size": 7}}).bind(CustomProperties).size == 7

    def test_env_overrides_bound_field(self, monkeypatch):
        monkeypatch.setenv("HTTPSD_HTTP_TIMEOUT", "5")
        props = Config({"httpsd": {"http": {"url": "http://upstream.local"}}}).bind(HttpDiscoveryProperties)
        assert props.timeout == 5.0

    def test_validation_error(self):
        with pytest.raises(ConfigurationException) as exc_info:
            Config({"httpsd": {"http": {"timeout": -1}}}).bind(HttpDiscoveryProperties)
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_template_modes_are_exclusive(self):
        config = Config({"httpsd": {"http": {"template": {"jinja": "[]", "jsonpath": "$.x"}}}})
        with pytest.raises(ConfigurationException):
            config.bind(HttpDiscoveryProperties)

    def test_tls_cert_requires_key(self):
        config = Config({"httpsd": {"http": {"tls": {"cert_file": "client.pem"}}}})
        with pytest.raises(ConfigurationException):
            config.bind(HttpDiscoveryProperties)


class TestNacosProperties:
    def test_csv_lists(self):
        config = Config({"httpsd": {"nacos": {"addresses": "a, b", "exclude": "^test-"}}})
        props = config.bind(NacosDiscoveryProperties)
        assert props.addresses == ["a", "b"]
        assert props.exclude == ["^test-"]

    def test_cache_ttl_defaults_to_twice_interval(self):
        props = Config({"httpsd": {"nacos": {"interval": 30}}}).bind(NacosDiscoveryProperties)
        assert props.effective_cache_ttl == 60

    def test_explicit_cache_ttl(self):
        props = Config({"httpsd": {"nacos": {"cache_ttl": 15}}}).bind(NacosDiscoveryProperties)
        assert props.effective_cache_ttl == 15


class TestServerProperties:
    def test_defaults(self):
        props = Config.from_file().bind(ServerProperties)
        assert props.host == "0.0.0.0"
        assert props.port == 8080
        assert props.path == "/"
