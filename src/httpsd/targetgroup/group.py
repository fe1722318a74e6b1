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
"""TargetGroup, the unit of discovery output, and its wire format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from httpsd.kernel.exceptions import TransformException
from httpsd.targetgroup.labels import ADDRESS_LABEL, is_valid_label_name

LabelSet = dict[str, str]

# FNV-1a, 64 bit.
_FNV_OFFSET64 = 14695981039346656037
_FNV_PRIME64 = 1099511628211
_MASK64 = 0xFFFFFFFFFFFFFFFF
_SEPARATOR = 0xFF


def _hash_add(h: int, data: bytes) -> int:
    for byte in data:
        h ^= byte
        h = (h * _FNV_PRIME64) & _MASK64
    return h


def fingerprint(labels: LabelSet) -> int:
    """Return the 64-bit fingerprint of a label set.

    Names are visited in ascending order; every name and value is followed by
    a 0xff separator byte. The result only depends on the label content, so it
    is stable across calls and processes.
    """
    h = _FNV_OFFSET64
    for name in sorted(labels):
        h = _hash_add(h, name.encode("utf-8"))
        h = _hash_add(h, bytes((_SEPARATOR,)))
        h = _hash_add(h, labels[name].encode("utf-8"))
        h = _hash_add(h, bytes((_SEPARATOR,)))
    return h


@dataclass
class TargetGroup:
    """A set of targets sharing common labels, tagged with a source id."""

    targets: list[LabelSet] = field(default_factory=list)
    labels: LabelSet = field(default_factory=dict)
    source: str = ""

    def __post_init__(self) -> None:
        if self.labels is None:
            self.labels = {}

    def fingerprint(self) -> int:
        return fingerprint(self.labels)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the discovery wire format."""
        return {
            "targets": [dict(target) for target in self.targets],
            "labels": dict(self.labels),
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Any) -> TargetGroup:
        """Build a TargetGroup from its decoded JSON object.

        Targets may be label-set objects or bare ``"host:port"`` strings.
        Raises TransformException when the object does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise TransformException(f"target group must be an object, got {type(data).__name__}")

        raw_targets = data.get("targets") or []
        if not isinstance(raw_targets, list):
            raise TransformException("'targets' must be an array")
        targets: list[LabelSet] = []
        for raw in raw_targets:
            if isinstance(raw, str):
                targets.append({ADDRESS_LABEL: raw})
                continue
            target = _label_set(raw, "target")
            if ADDRESS_LABEL not in target:
                raise TransformException(f"target {target!r} has no {ADDRESS_LABEL} label")
            targets.append(target)

        labels = _label_set(data.get("labels") or {}, "labels")

        source = data.get("source") or ""
        if not isinstance(source, str):
            raise TransformException("'source' must be a string")

        return cls(targets=targets, labels=labels, source=source)


def _label_set(raw: Any, what: str) -> LabelSet:
    if not isinstance(raw, dict):
        raise TransformException(f"{what} must be an object of string values")
    result: LabelSet = {}
    for name, value in raw.items():
        if not is_valid_label_name(name):
            raise TransformException(f"invalid label name {name!r} in {what}")
        if not isinstance(value, str):
            raise TransformException(f"label {name!r} in {what} must have a string value")
        result[name] = value
    return result


def parse_target_groups(payload: Any) -> list[TargetGroup | None]:
    """Convert a decoded JSON array into target groups.

    ``null`` entries are kept as ``None`` so grouping can reject the whole list.
    """
    if not isinstance(payload, list):
        raise TransformException(f"expected a JSON array of target groups, got {type(payload).__name__}")
    return [None if item is None else TargetGroup.from_dict(item) for item in payload]
