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
"""Merge target groups that share an identical label set."""

from __future__ import annotations

from collections.abc import Iterable

from httpsd.kernel.exceptions import NilTargetGroupException
from httpsd.targetgroup.group import TargetGroup


def group_target_groups(groups: Iterable[TargetGroup | None]) -> list[TargetGroup]:
    """Return one group per distinct label fingerprint.

    Targets of groups sharing a fingerprint are concatenated in input order and
    the result is ordered by ascending fingerprint. The input groups are not
    modified. A ``None`` anywhere in *groups* fails the whole call.
    """
    merged: dict[int, TargetGroup] = {}
    for index, group in enumerate(groups):
        if group is None:
            raise NilTargetGroupException(
                "nil target group item found",
                code="NIL_TARGET_GROUP",
                context={"index": index},
            )
        fp = group.fingerprint()
        existing = merged.get(fp)
        if existing is None:
            merged[fp] = TargetGroup(
                targets=[dict(target) for target in group.targets],
                labels=dict(group.labels),
                source=group.source,
            )
        else:
            existing.targets.extend(dict(target) for target in group.targets)
    return [merged[fp] for fp in sorted(merged)]
