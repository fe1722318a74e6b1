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
"""TTL-bounded in-memory store of target groups per service."""

from __future__ import annotations

import time
from collections.abc import Iterable
from datetime import timedelta

from httpsd.targetgroup import TargetGroup


class TargetGroupCache:
    """Maps a service name to its latest target groups.

    Every entry expires *ttl* after it was written; expired entries are
    dropped lazily on access and by :meth:`purge_expired`. :meth:`retain`
    removes services that disappeared from the directory.
    """

    def __init__(self, ttl: timedelta | None = None) -> None:
        self._ttl = ttl
        self._store: dict[str, tuple[list[TargetGroup], float | None]] = {}

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and time.monotonic() > expires_at

    async def get(self, key: str) -> list[TargetGroup] | None:
        """Get the groups of a service. Returns None if missing or expired."""
        entry = self._store.get(key)
        if entry is None:
            return None
        groups, expires_at = entry
        if self._expired(expires_at):
            del self._store[key]
            return None
        return groups

    async def put(self, key: str, groups: list[TargetGroup]) -> None:
        """Store the groups of a service, replacing any previous entry."""
        expires_at = None
        if self._ttl is not None:
            expires_at = time.monotonic() + self._ttl.total_seconds()
        self._store[key] = (groups, expires_at)

    async def retain(self, keys: Iterable[str]) -> list[str]:
        """Drop every service not in *keys*; return the removed names."""
        keep = set(keys)
        removed = [key for key in self._store if key not in keep]
        for key in removed:
            del self._store[key]
        return removed

    async def purge_expired(self) -> int:
        expired = [key for key, (_, expires_at) in self._store.items() if self._expired(expires_at)]
        for key in expired:
            del self._store[key]
        return len(expired)

    async def items(self) -> list[tuple[str, list[TargetGroup]]]:
        """Snapshot of live entries, ordered by service name."""
        await self.purge_expired()
        return sorted(((key, groups) for key, (groups, _) in self._store.items()), key=lambda item: item[0])

    def __len__(self) -> int:
        return len(self._store)
