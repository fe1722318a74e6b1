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
"""Transformers: pluggable upstream-JSON to target-group conversion."""

from httpsd.transformer.asitis import AsItIsTransformer
from httpsd.transformer.nacos import NacosService, NacosTransformer, service_to_target_groups
from httpsd.transformer.registry import TransformerRegistry
from httpsd.transformer.template import Template
from httpsd.transformer.types import Transformer

__all__ = [
    "AsItIsTransformer",
    "NacosService",
    "NacosTransformer",
    "Template",
    "Transformer",
    "TransformerRegistry",
    "service_to_target_groups",
]
