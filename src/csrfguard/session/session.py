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
"""HttpSession — per-request view of the server-side session data.

``SessionStorage`` keeps the CSRF secret here and ``NonceHandler`` keeps
its ledger of issued keys. Writes flag the session as modified so that
``SessionFilter`` knows it must be saved.
"""

from __future__ import annotations

from typing import Any


class HttpSession:
    """Session attributes loaded for a single request.

    Args:
        session_id: Value of the session cookie.
        data: Attributes loaded from the store; a fresh dict when omitted.
        is_new: The session was started by this request and has no cookie yet.
    """

    def __init__(self, session_id: str, data: dict[str, Any] | None = None, *, is_new: bool = False) -> None:
        self._id = session_id
        self._data: dict[str, Any] = data if data is not None else {}
        self._is_new = is_new
        self._modified = is_new

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def modified(self) -> bool:
        return self._modified

    def get_attribute(self, name: str) -> Any | None:
        return self._data.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        self._data[name] = value
        self._modified = True

    def get_data(self) -> dict[str, Any]:
        return self._data
