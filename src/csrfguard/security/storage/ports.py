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
"""TokenStorage protocol — persistence of the CSRF secret between requests."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from csrfguard.context.request_context import RequestContext


@runtime_checkable
class TokenStorage(Protocol):
    """Stores and loads the raw secret for the request's client.

    Both operations raise :class:`~csrfguard.kernel.exceptions.TokenStorageException`
    when the storage medium is unavailable; they never report such a fault
    as "no token stored".
    """

    def store_token(self, request: RequestContext, token: bytes) -> None: ...

    def get_stored_token(self, request: RequestContext) -> bytes | None: ...
