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
"""Tests for the transformer registry, templates, and built-in transformers."""

import json

import httpx
import pytest

from httpsd.kernel.exceptions import (
    ConfigurationException,
    InvalidQueryException,
    RegistrationException,
    TransformException,
)
from httpsd.transformer import (
    AsItIsTransformer,
    NacosTransformer,
    Template,
    TransformerRegistry,
)


class TestTransformerRegistry:
    def test_register_and_get(self):
        registry = TransformerRegistry()
        transformer = AsItIsTransformer()
        registry.register(transformer)
        assert registry.get("asitis") is transformer
        assert "asitis" in registry
        assert len(registry) == 1

    def test_unknown_name_returns_none(self):
        assert TransformerRegistry().get("missing") is None

    def test_duplicate_registration_rejected(self):
        registry = TransformerRegistry()
        registry.register(AsItIsTransformer())
        with pytest.raises(RegistrationException) as exc_info:
            registry.register(AsItIsTransformer())
        assert exc_info.value.code == "DUPLICATE_TRANSFORMER"

    def test_names_preserve_registration_order(self):
        registry = TransformerRegistry()
        registry.register(NacosTransformer())
        registry.register(AsItIsTransformer())
        assert registry.names() == ["nacos", "asitis"]


class TestTemplate:
    def test_both_modes_rejected(self):
        with pytest.raises(ConfigurationException) as exc_info:
            Template(jinja="[]", jsonpath="$.items")
        assert exc_info.value.code == "TEMPLATE_AMBIGUOUS"

    def test_invalid_jinja_rejected_at_construction(self):
        with pytest.raises(ConfigurationException):
            Template(jinja="{% for x in %}")

    def test_disabled_template_passes_data_through(self):
        template = Template()
        assert not template.enabled
        assert template.execute([1, 2]) == [1, 2]

    def test_jinja_reshapes_object(self):
        template = Template(
            jinja=(
                "[{% for i in items %}"
                '{"targets": ["{{ i.ip }}:{{ i.port }}"], "labels": {"job": "{{ i.job }}"}}'
                "{% if not loop.last %},{% endif %}{% endfor %}]"
            )
        )
        data = {"items": [{"ip": "10.0.0.1", "port": 9100, "job": "node"}]}
        assert template.execute(data) == [{"targets": ["10.0.0.1:9100"], "labels": {"job": "node"}}]

    def test_jinja_output_must_be_json(self):
        template = Template(jinja="not json")
        with pytest.raises(TransformException):
            template.execute({})

    def test_jsonpath_selects_array(self):
        template = Template(jsonpath="$.data.groups")
        groups = [{"targets": ["a:1"]}]
        assert template.execute({"data": {"groups": groups}}) == groups

    def test_jsonpath_collects_multiple_matches(self):
        template = Template(jsonpath="$.groups[*]")
        data = {"groups": [{"targets": ["a:1"]}, {"targets": ["b:1"]}]}
        assert template.execute(data) == data["groups"]


class TestAsItIsTransformer:
    def test_name_and_method(self):
        transformer = AsItIsTransformer()
        assert transformer.name == "asitis"
        assert transformer.http_method == "GET"

    def test_build_target_url_merges_query(self):
        transformer = AsItIsTransformer()
        url = transformer.build_target_url(
            "http://upstream.local/targets?env=prod", httpx.QueryParams({"job": "node"})
        )
        parsed = httpx.URL(url)
        assert parsed.path == "/targets"
        assert parsed.params["env"] == "prod"
        assert parsed.params["job"] == "node"

    def test_build_target_url_without_params(self):
        url = AsItIsTransformer().build_target_url("http://upstream.local/targets", httpx.QueryParams())
        assert httpx.URL(url).path == "/targets"
        assert not httpx.URL(url).params

    def test_transform_decodes_target_groups(self):
        body = json.dumps([{"targets": [{"__address__": "10.0.0.1:9100"}], "labels": {"job": "a"}}]).encode()
        groups = AsItIsTransformer().transform(body)
        assert len(groups) == 1
        assert groups[0].labels == {"job": "a"}

    def test_transform_keeps_null_entries(self):
        assert AsItIsTransformer().transform(b"[null]") == [None]

    def test_malformed_json(self):
        with pytest.raises(TransformException) as exc_info:
            AsItIsTransformer().transform(b"{not json")
        assert exc_info.value.code == "MALFORMED_JSON"

    def test_transform_applies_template(self):
        transformer = AsItIsTransformer(template=Template(jsonpath="$.result"))
        body = json.dumps({"result": [{"targets": ["10.0.0.1:80"]}]}).encode()
        groups = transformer.transform(body)
        assert groups[0].targets == [{"__address__": "10.0.0.1:80"}]


class TestNacosTransformer:
    def test_build_target_url_requires_service_name(self):
        with pytest.raises(InvalidQueryException):
            NacosTransformer().build_target_url("http://nacos.local:8848", httpx.QueryParams())

    def test_build_target_url_forwards_known_params(self):
        url = NacosTransformer().build_target_url(
            "http://nacos.local:8848/",
            httpx.QueryParams({"serviceName": "orders", "groupName": "G", "other": "x"}),
        )
        parsed = httpx.URL(url)
        assert parsed.path == "/nacos/v1/ns/instance/list"
        assert parsed.params["serviceName"] == "orders"
        assert parsed.params["groupName"] == "G"
        assert "other" not in parsed.params

    def test_transform_instance_list(self):
        body = json.dumps(
            {
                "name": "DEFAULT_GROUP@@orders",
                "groupName": "DEFAULT_GROUP",
                "hosts": [
                    {
                        "ip": "10.0.0.1",
                        "port": 8080,
                        "clusterName": "DEFAULT",
                        "serviceName": "orders",
                        "metadata": {"app.name-v1": "orders"},
                    }
                ],
            }
        ).encode()

        groups = NacosTransformer().transform(body)

        assert len(groups) == 1
        assert groups[0].targets == [{"__address__": "10.0.0.1:8080"}]
        assert groups[0].labels == {
            "__meta_nacos_cluster": "DEFAULT",
            "__meta_nacos_service": "orders",
            "__meta_nacos_group": "DEFAULT_GROUP",
            "__meta_nacos_metadata_app_name_v1": "orders",
        }

    def test_ipv6_address_is_bracketed(self):
        body = json.dumps({"hosts": [{"ip": "fe80::1", "port": 80}]}).encode()
        groups = NacosTransformer().transform(body)
        assert groups[0].targets == [{"__address__": "[fe80::1]:80"}]

    def test_malformed_body(self):
        with pytest.raises(TransformException):
            NacosTransformer().transform(b"[]")
