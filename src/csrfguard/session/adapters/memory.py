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
"""InMemorySessionStore — process-local SessionStore."""

from __future__ import annotations

import asyncio
import copy
import time
from typing import Any


class InMemorySessionStore:
    """Keeps sessions in a dict guarded by an ``asyncio.Lock``.

    Entries are deep-copied on the way in and out, so a request sees another
    request's secret or nonce ledger only once that request has been saved.
    Expired entries are dropped when they are next read.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[dict[str, Any], float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> dict[str, Any] | None:
        async with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            data, expires_at = entry
            if time.monotonic() > expires_at:
                del self._sessions[session_id]
                return None
            return copy.deepcopy(data)

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        async with self._lock:
            self._sessions[session_id] = (copy.deepcopy(data), time.monotonic() + ttl)
