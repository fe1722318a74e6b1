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
"""Tests for target-group fingerprinting and grouping."""

import random

import pytest

from httpsd.kernel.exceptions import NilTargetGroupException
from httpsd.targetgroup import TargetGroup, fingerprint, group_target_groups


def _group(address: str, **labels: str) -> TargetGroup:
    return TargetGroup(targets=[{"__address__": address}], labels=dict(labels))


class TestFingerprint:
    def test_empty_label_set_is_offset_basis(self):
        assert fingerprint({}) == 14695981039346656037

    def test_independent_of_insertion_order(self):
        assert fingerprint({"a": "1", "b": "2"}) == fingerprint({"b": "2", "a": "1"})

    def test_distinguishes_values(self):
        assert fingerprint({"job": "a"}) != fingerprint({"job": "b"})

    def test_separator_prevents_concatenation_collisions(self):
        assert fingerprint({"ab": "c"}) != fingerprint({"a": "bc"})

    def test_fits_in_64_bits(self):
        assert 0 <= fingerprint({"job": "node", "env": "prod"}) < 2**64


class TestGroupTargetGroups:
    def test_merges_identical_label_sets_in_input_order(self):
        first = _group("10.0.0.1:9100", job="node")
        second = _group("10.0.0.2:9100", job="node")

        result = group_target_groups([first, second])

        assert len(result) == 1
        assert result[0].labels == {"job": "node"}
        assert result[0].targets == [
            {"__address__": "10.0.0.1:9100"},
            {"__address__": "10.0.0.2:9100"},
        ]

    def test_orders_by_ascending_fingerprint(self):
        groups = [_group(f"10.0.0.{i}:80", job=f"job-{i}") for i in range(10)]
        result = group_target_groups(groups)
        fingerprints = [g.fingerprint() for g in result]
        assert fingerprints == sorted(fingerprints)

    def test_reordering_input_gives_same_output(self):
        groups = [_group(f"10.0.0.{i}:80", job=f"job-{i % 4}") for i in range(12)]
        shuffled = list(groups)
        random.Random(7).shuffle(shuffled)

        expected = group_target_groups(groups)
        actual = group_target_groups(shuffled)

        assert [g.labels for g in actual] == [g.labels for g in expected]
        for a, e in zip(actual, expected):
            assert sorted(t["__address__"] for t in a.targets) == sorted(t["__address__"] for t in e.targets)

    def test_none_aborts_whole_operation(self):
        groups = [_group("10.0.0.1:80", job="a"), _group("10.0.0.2:80", job="b"), None]
        with pytest.raises(NilTargetGroupException) as exc_info:
            group_target_groups(groups)
        assert exc_info.value.context == {"index": 2}

    def test_does_not_mutate_inputs(self):
        first = _group("10.0.0.1:9100", job="node")
        second = _group("10.0.0.2:9100", job="node")

        group_target_groups([first, second])
        group_target_groups([first, second])

        assert first.targets == [{"__address__": "10.0.0.1:9100"}]

    def test_empty_input(self):
        assert group_target_groups([]) == []

    def test_source_and_targets_do_not_affect_equality(self):
        a = TargetGroup(targets=[{"__address__": "a:1"}], labels={"x": "1"}, source="one")
        b = TargetGroup(targets=[{"__address__": "b:1"}], labels={"x": "1"}, source="two")
        result = group_target_groups([a, b])
        assert len(result) == 1
        assert result[0].source == "one"
