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
"""Target groups: the canonical discovery output and its grouping algorithm."""

from httpsd.targetgroup.group import LabelSet, TargetGroup, fingerprint, parse_target_groups
from httpsd.targetgroup.grouping import group_target_groups
from httpsd.targetgroup.labels import ADDRESS_LABEL, META_LABEL_PREFIX, formalize_label_name

__all__ = [
    "ADDRESS_LABEL",
    "LabelSet",
    "META_LABEL_PREFIX",
    "TargetGroup",
    "fingerprint",
    "formalize_label_name",
    "group_target_groups",
    "parse_target_groups",
]
